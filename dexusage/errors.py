# ==============================================
# Errors
# ==============================================
#
# - DexUsageError        → base class for everything raised by this package
# - UnsupportedIsaError  → record() called with an ISA outside the vocabulary
# - OwnerMismatchError   → owner user of a known secondary dex path changed
# - UsageFormatError     → usage file could not be parsed
#
# ==============================================


class DexUsageError(Exception):
    """Base class for dex usage errors."""


class UnsupportedIsaError(DexUsageError, ValueError):
    """Raised when a loader ISA is not part of the supported vocabulary."""

    def __init__(self, isa: str):
        super().__init__(f"loaderIsa {isa} is unsupported")
        self.isa = isa


class OwnerMismatchError(DexUsageError):
    """
    Raised when a secondary dex file is recorded with a different owner.

    Secondary dex files live in the owning user's data directory, so a
    change of owner for the same path means the caller let a loader cross
    user boundaries.
    """

    def __init__(self, dex_path: str, old_owner: int, new_owner: int):
        super().__init__(
            f"Trying to change ownerUserId for dex path {dex_path} "
            f"from {old_owner} to {new_owner}"
        )
        self.dex_path = dex_path
        self.old_owner = old_owner
        self.new_owner = new_owner


class UsageFormatError(DexUsageError, ValueError):
    """Raised when the usage file is malformed or has the wrong version."""
