# ==============================================
# Dex Usage Store
# ==============================================
#
# Package Structure:
#
# dexusage/
# ├── usage/                # In-memory usage table and its record types
# ├── persistence/          # Text codec, atomic file, debounced writer
# ├── isa.py                # ABI -> instruction set vocabulary
# ├── errors.py             # Exception hierarchy
# ├── config.py             # Configuration management
# ├── logging_config.py     # Logging handlers for the CLI
# ├── package_dex_usage.py  # Facade tying table and store together
# └── cli.py                # Command line entry point
#
# ==============================================

__version__ = "0.1.0"

from .package_dex_usage import PackageDexUsage
from .usage import DexUseInfo, PackageUseInfo, UsageTable

__all__ = [
    "PackageDexUsage",
    "PackageUseInfo",
    "DexUseInfo",
    "UsageTable",
]
