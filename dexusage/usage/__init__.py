# ==============================================
# USAGE: In-memory usage table
# ==============================================
#
# Modules:
# --------
# - usage_info.py   → PackageUseInfo / DexUseInfo data classes
# - usage_table.py  → Lock-guarded table with merge and prune logic
#
# ==============================================

from .usage_info import DexUseInfo, PackageUseInfo
from .usage_table import UsageTable

__all__ = ["DexUseInfo", "PackageUseInfo", "UsageTable"]
