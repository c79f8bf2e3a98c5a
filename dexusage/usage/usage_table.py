# ==============================================
# UsageTable
# ==============================================
#
# PURPOSE:
#   The in-memory record of which packages loaded which dex files.
#   record() sits on the code loading path, so it only touches the
#   map under the lock and never does I/O.
#
# LOCKING:
#   One re-entrant lock guards the map and every value reachable from
#   it. Anything returned to a caller is a deep copy taken under the
#   lock, so callers never observe a merge in progress.
#
# ==============================================

import logging
import threading
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set

from dexusage.errors import OwnerMismatchError, UnsupportedIsaError
from dexusage.usage.usage_info import DexUseInfo, PackageUseInfo

logger = logging.getLogger(__name__)


class UsageTable:
    """Lock-guarded map of package name -> PackageUseInfo."""

    def __init__(self, supported_isas: Iterable[str]):
        self._supported_isas: FrozenSet[str] = frozenset(supported_isas)
        self._lock = threading.RLock()
        self._packages: Dict[str, PackageUseInfo] = {}

    # ======================================
    # Recording
    # ======================================
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
        Record a dex file load.

        Args:
            owning_package: Package that owns the dex file
            dex_path: Path of the loaded dex file
            owner_user_id: User running the code that loaded the file
            loader_isa: ISA of the loading process
            is_used_by_other_apps: True if the loader is not the owning package
            primary_or_split: True for primary/split APKs, False for secondary dex

        Returns:
            True if the load is new information, False if it was already known.

        Raises:
            UnsupportedIsaError: loader_isa is not a supported ISA
            OwnerMismatchError: dex_path was recorded before with another owner
        """
        if loader_isa not in self._supported_isas:
            raise UnsupportedIsaError(loader_isa)

        with self._lock:
            package_info = self._packages.get(owning_package)

            if package_info is None:
                package_info = PackageUseInfo()
                if primary_or_split:
                    # Primaries are compiled for all users and ISAs, so
                    # only the flag matters.
                    package_info.is_used_by_other_apps = is_used_by_other_apps
                else:
                    package_info.dex_use_info_map[dex_path] = DexUseInfo.create(
                        owner_user_id, is_used_by_other_apps, loader_isa
                    )
                self._packages[owning_package] = package_info
                return True

            if primary_or_split:
                return package_info.merge(is_used_by_other_apps)

            new_data = DexUseInfo.create(owner_user_id, is_used_by_other_apps, loader_isa)
            existing = package_info.dex_use_info_map.get(dex_path)
            if existing is None:
                package_info.dex_use_info_map[dex_path] = new_data
                return True

            if existing.owner_user_id != owner_user_id:
                raise OwnerMismatchError(dex_path, existing.owner_user_id, owner_user_id)

            return existing.merge(new_data)

    # ======================================
    # Queries
    # ======================================
    def get_package_use_info(self, package_name: str) -> Optional[PackageUseInfo]:
        """
        Return a copy of the usage recorded for a package.

        Returns:
            A PackageUseInfo detached from the table, or None if the
            package was never recorded.
        """
        with self._lock:
            package_info = self._packages.get(package_name)
            return package_info.copy() if package_info is not None else None

    def package_names(self) -> List[str]:
        with self._lock:
            return sorted(self._packages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._packages)

    def __contains__(self, package_name: object) -> bool:
        with self._lock:
            return package_name in self._packages

    # ======================================
    # Maintenance
    # ======================================
    def sync_data(self, package_to_users: Mapping[str, Set[int]]) -> None:
        """
        Remove entries for packages and users that no longer exist.

        Args:
            package_to_users: Installed package name -> ids of the users it
                is installed for
        """
        with self._lock:
            removed_packages = 0
            removed_dex = 0
            for package_name in list(self._packages):
                users = package_to_users.get(package_name)
                if users is None:
                    # Uninstalled
                    del self._packages[package_name]
                    removed_packages += 1
                    continue

                package_info = self._packages[package_name]
                dex_map = package_info.dex_use_info_map
                for dex_path in [
                    path for path, info in dex_map.items()
                    if info.owner_user_id not in users
                ]:
                    del dex_map[dex_path]
                    removed_dex += 1

                if not package_info.is_used_by_other_apps and not dex_map:
                    del self._packages[package_name]
                    removed_packages += 1

        if removed_packages or removed_dex:
            logger.debug(
                "Synced usage data: removed %d packages, %d dex files",
                removed_packages, removed_dex,
            )

    def clear(self) -> None:
        with self._lock:
            self._packages.clear()

    # ======================================
    # Snapshot / restore (persistence only)
    # ======================================
    def snapshot(self) -> Dict[str, PackageUseInfo]:
        """Deep copy of the whole table, taken under the lock."""
        with self._lock:
            return {name: info.copy() for name, info in self._packages.items()}

    def replace_all(self, data: Mapping[str, PackageUseInfo]) -> None:
        """Replace the table contents with freshly read data."""
        fresh = {name: info.copy() for name, info in data.items()}
        with self._lock:
            self._packages = fresh
