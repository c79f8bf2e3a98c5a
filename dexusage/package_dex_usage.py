# ==============================================
# PackageDexUsage: Facade
# ==============================================
#
# PURPOSE:
#   The class the rest of the platform talks to. It owns the usage
#   table and the store that keeps it on disk, and turns "a dex file
#   was loaded" into a merged record plus a background write.
#
# HOW THE PIECES CONNECT:
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                    PackageDexUsage                       │
#   │                                                          │
#   │   record(...) ──► UsageTable (lock, merge, no I/O)       │
#   │                       │ changed?                         │
#   │                       ▼                                  │
#   │               UsageStore.request_async_persist()         │
#   │                       │ timer thread                     │
#   │                       ▼                                  │
#   │   snapshot ──► UsageCodec.write ──► AtomicFile           │
#   │                                                          │
#   │   read() ◄── AtomicFile ◄── UsageCodec.read              │
#   └──────────────────────────────────────────────────────────┘
#
# ==============================================

import logging
from typing import List, Mapping, Optional, Set

from dexusage.config import AppConfig, get_config
from dexusage.persistence.codec import UsageCodec
from dexusage.persistence.usage_store import UsageStore
from dexusage.usage.usage_info import PackageUseInfo
from dexusage.usage.usage_table import UsageTable

logger = logging.getLogger(__name__)


class PackageDexUsage:
    """
    Usage information about dex files, kept in memory and on disk.
    """

    def __init__(self, config: Optional[AppConfig] = None, auto_persist: bool = True):
        """
        Build the table and its store. Nothing is read until read().

        Args:
            config: Application configuration. If None, loads from environment.
            auto_persist: Schedule a background write whenever record()
                reports new information.
        """
        self._config = config or get_config()
        self._auto_persist = auto_persist

        isas = self._config.isa.supported_isas
        self._table = UsageTable(isas)
        self._codec = UsageCodec(isas)
        self._store = UsageStore(
            self._table,
            self._codec,
            self._config.store.file_path,
            write_delay_seconds=self._config.store.write_delay_seconds,
        )

    @property
    def store(self) -> UsageStore:
        return self._store

    def record(
        self,
        owning_package: str,
        dex_path: str,
        owner_user_id: int,
        loader_isa: str,
        is_used_by_other_apps: bool,
        primary_or_split: bool,
    ) -> bool:
        """
        Record a dex file load and schedule a write if it was new.

        See UsageTable.record() for arguments and errors.

        Returns:
            True if the load constitutes new information.
        """
        changed = self._table.record(
            owning_package,
            dex_path,
            owner_user_id,
            loader_isa,
            is_used_by_other_apps,
            primary_or_split,
        )
        if changed and self._auto_persist:
            self._store.request_async_persist()
        return changed

    def read(self) -> bool:
        """Load the usage file, replacing whatever is in memory."""
        return self._store.load()

    def maybe_write_async(self) -> bool:
        return self._store.request_async_persist()

    def write_now(self) -> bool:
        return self._store.write_now()

    def sync_data(self, package_to_users: Mapping[str, Set[int]]) -> None:
        """
        Drop records for uninstalled packages and removed users.

        Args:
            package_to_users: Installed package name -> user ids
        """
        self._table.sync_data(package_to_users)
        if self._auto_persist:
            self._store.request_async_persist()

    def get_package_use_info(self, package_name: str) -> Optional[PackageUseInfo]:
        return self._table.get_package_use_info(package_name)

    def package_names(self) -> List[str]:
        return self._table.package_names()

    def clear(self) -> None:
        self._table.clear()

    def dump(self) -> str:
        """Current contents in file format, for diagnostics."""
        return self._store.dump()

    def close(self) -> None:
        """Write out anything still pending."""
        if not self._store.flush():
            logger.warning("Pending dex usage could not be written on close")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False  # Don't suppress exceptions
