# ==============================================
# Usage Records (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes holding what is known about one package and each of
#   its secondary dex files. These are the values stored in the
#   UsageTable and the values the codec reads and writes.
#
# ==============================================

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set


@dataclass
class DexUseInfo:
    """Usage of a single secondary dex file."""

    owner_user_id: int                      # never changes once recorded
    is_used_by_other_apps: bool = False
    loader_isas: Set[str] = field(default_factory=set)  # only grows

    @classmethod
    def create(
        cls,
        owner_user_id: int,
        is_used_by_other_apps: bool,
        loader_isa: Optional[str] = None,
    ) -> "DexUseInfo":
        """Build a record for a first load, optionally seeded with one ISA."""
        isas = {loader_isa} if loader_isa is not None else set()
        return cls(owner_user_id, is_used_by_other_apps, isas)

    def merge(self, other: "DexUseInfo") -> bool:
        """
        Fold another observation of the same file into this one.

        The owner is not touched; callers check it before merging.

        Args:
            other: The new observation

        Returns:
            True if the flag or the ISA set changed.
        """
        old_used = self.is_used_by_other_apps
        self.is_used_by_other_apps = old_used or other.is_used_by_other_apps

        new_isas = other.loader_isas - self.loader_isas
        self.loader_isas |= new_isas

        return bool(new_isas) or old_used != self.is_used_by_other_apps

    def copy(self) -> "DexUseInfo":
        return DexUseInfo(
            self.owner_user_id,
            self.is_used_by_other_apps,
            set(self.loader_isas),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner_user_id": self.owner_user_id,
            "is_used_by_other_apps": self.is_used_by_other_apps,
            "loader_isas": sorted(self.loader_isas),
        }


@dataclass
class PackageUseInfo:
    """
    Usage of a package's code.

    The package-level flag covers the primary and split APKs, which are
    compiled for every user and ISA. Secondary dex files are tracked
    per path because they belong to one user.
    """

    is_used_by_other_apps: bool = False
    dex_use_info_map: Dict[str, DexUseInfo] = field(default_factory=dict)

    def merge(self, is_used_by_other_apps: bool) -> bool:
        """
        OR a new primary/split observation into the package flag.

        Returns:
            True if the flag flipped to True.
        """
        old_used = self.is_used_by_other_apps
        self.is_used_by_other_apps = old_used or is_used_by_other_apps
        return old_used != self.is_used_by_other_apps

    def copy(self) -> "PackageUseInfo":
        return PackageUseInfo(
            self.is_used_by_other_apps,
            {path: info.copy() for path, info in self.dex_use_info_map.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_used_by_other_apps": self.is_used_by_other_apps,
            "dex_files": {
                path: info.to_dict()
                for path, info in sorted(self.dex_use_info_map.items())
            },
        }
