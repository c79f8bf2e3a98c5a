# ==============================================
# PERSISTENCE: Usage data across restarts
# ==============================================
#
# This package saves and loads the usage table so that compilation
# decisions survive process restarts.
#
# Modules:
# --------
# - codec.py        → Versioned text format (encode / decode)
# - atomic_file.py  → Temp file + rename writes
# - usage_store.py  → Startup load, debounced background writes
#
# ==============================================

from .atomic_file import AtomicFile
from .codec import UsageCodec, VERSION, VERSION_HEADER
from .usage_store import UsageStore

__all__ = [
    "AtomicFile",
    "UsageCodec",
    "UsageStore",
    "VERSION",
    "VERSION_HEADER",
]
