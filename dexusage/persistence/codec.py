# ==============================================
# UsageCodec
# ==============================================
#
# PURPOSE:
#   Convert a usage table snapshot to and from the versioned text
#   format stored on disk.
#
# FILE FORMAT:
# ------------
#   PACKAGE_MANAGER__PACKAGE_DEX_USAGE__1
#   com.example.app,0
#   #/data/user/0/com.example.app/code_cache/plugin.dex
#   0,1,arm64,arm
#   #/data/user/10/com.example.app/files/extra.dex
#   10,0,arm64
#   com.example.other,1
#
#   - First line: fixed header token immediately followed by the version.
#   - "name,flag" lines start a package.
#   - A "#path" line starts a secondary dex record; the NEXT line holds
#     "owner,flag[,isa]*" (at least 3 fields).
#   - Flags are "0" or "1", nothing else.
#
# PARSING:
#   Two states: expecting a package (or dex path) line, and expecting
#   the data line that follows a dex path. Any structural problem is a
#   UsageFormatError; unknown ISA tokens are dropped and logged, and a
#   dex record left with no ISA at all is dropped.
#
# ==============================================

import io
import logging
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, TextIO

from dexusage.errors import UsageFormatError
from dexusage.usage.usage_info import DexUseInfo, PackageUseInfo

logger = logging.getLogger(__name__)


VERSION = 1
VERSION_HEADER = "PACKAGE_MANAGER__PACKAGE_DEX_USAGE__"
SPLIT_CHAR = ","
DEX_LINE_CHAR = "#"

_EXPECT_PACKAGE = "package"
_EXPECT_DEX_DATA = "dex_data"


def write_boolean(value: bool) -> str:
    return "1" if value else "0"


def read_boolean(token: str) -> bool:
    if token == "0":
        return False
    if token == "1":
        return True
    raise UsageFormatError(f"Unknown bool encoding: {token}")


class UsageCodec:
    """Reads and writes the package dex usage file format."""

    def __init__(self, supported_isas: Iterable[str], version: int = VERSION):
        self._supported_isas: FrozenSet[str] = frozenset(supported_isas)
        self._version = version

    # ======================================
    # Encoding
    # ======================================
    def write(self, data: Mapping[str, PackageUseInfo], out: TextIO) -> None:
        """
        Write a table snapshot to a text stream.

        Output is sorted by package, dex path and ISA so the same table
        always produces the same bytes.
        """
        out.write(f"{VERSION_HEADER}{self._version}\n")

        for package_name in sorted(data):
            package_info = data[package_name]
            out.write(SPLIT_CHAR.join(
                [package_name, write_boolean(package_info.is_used_by_other_apps)]
            ))
            out.write("\n")

            for dex_path in sorted(package_info.dex_use_info_map):
                dex_info = package_info.dex_use_info_map[dex_path]
                fields = [
                    str(dex_info.owner_user_id),
                    write_boolean(dex_info.is_used_by_other_apps),
                ]
                fields.extend(sorted(dex_info.loader_isas))
                out.write(f"{DEX_LINE_CHAR}{dex_path}\n")
                out.write(SPLIT_CHAR.join(fields))
                out.write("\n")

    def encode(self, data: Mapping[str, PackageUseInfo]) -> str:
        buffer = io.StringIO()
        self.write(data, buffer)
        return buffer.getvalue()

    # ======================================
    # Decoding
    # ======================================
    def read(self, stream: TextIO) -> Dict[str, PackageUseInfo]:
        """
        Parse a usage file.

        Args:
            stream: Text stream positioned at the start of the file

        Returns:
            Package name -> PackageUseInfo

        Raises:
            UsageFormatError: missing or wrong header, or a malformed line
        """
        lines = iter(stream)
        self._read_header(next(lines, None))

        data: Dict[str, PackageUseInfo] = {}
        state = _EXPECT_PACKAGE
        current_package: Optional[PackageUseInfo] = None
        dex_path: Optional[str] = None

        for raw_line in lines:
            line = raw_line.rstrip("\r\n")

            if state == _EXPECT_DEX_DATA:
                dex_info = self._parse_dex_data(line)
                state = _EXPECT_PACKAGE
                if dex_info is None:
                    logger.error(
                        "Ignoring dex path with no supported ISAs: %s", dex_path
                    )
                    continue
                current_package.dex_use_info_map[dex_path] = dex_info
                continue

            if not line:
                continue

            if line.startswith(DEX_LINE_CHAR):
                if current_package is None:
                    raise UsageFormatError(
                        "Malformed usage file: expected package line before dex line"
                    )
                dex_path = line[len(DEX_LINE_CHAR):]
                state = _EXPECT_DEX_DATA
                continue

            elems = line.split(SPLIT_CHAR)
            if len(elems) != 2:
                raise UsageFormatError(f"Invalid package line: {line}")
            current_package = PackageUseInfo(read_boolean(elems[1]))
            data[elems[0]] = current_package

        if state == _EXPECT_DEX_DATA:
            raise UsageFormatError(f"Missing dex data line for dex path: {dex_path}")

        return data

    def decode(self, text: str) -> Dict[str, PackageUseInfo]:
        return self.read(io.StringIO(text))

    def _read_header(self, line: Optional[str]) -> None:
        if line is None:
            raise UsageFormatError("No version line found")

        line = line.rstrip("\r\n")
        if not line.startswith(VERSION_HEADER):
            raise UsageFormatError(f"Invalid version line: {line}")

        try:
            version = int(line[len(VERSION_HEADER):])
        except ValueError:
            raise UsageFormatError(f"Invalid version line: {line}") from None

        if version != self._version:
            raise UsageFormatError(f"Unexpected version: {version}")

    def _parse_dex_data(self, line: str) -> Optional[DexUseInfo]:
        """
        Parse an "owner,flag,isa..." line.

        Returns:
            The DexUseInfo, or None when none of its ISAs are supported.
            Such a record could not be written back in a readable form.
        """
        elems = line.split(SPLIT_CHAR)
        if len(elems) < 3:
            raise UsageFormatError(f"Invalid dex data line: {line}")

        try:
            owner_user_id = int(elems[0])
        except ValueError:
            raise UsageFormatError(f"Invalid owner user id: {elems[0]}") from None

        dex_info = DexUseInfo(owner_user_id, read_boolean(elems[1]))
        for isa in elems[2:]:
            if isa in self._supported_isas:
                dex_info.loader_isas.add(isa)
            else:
                logger.warning("Unsupported ISA when parsing usage file: %s", isa)

        if not dex_info.loader_isas:
            return None
        return dex_info
