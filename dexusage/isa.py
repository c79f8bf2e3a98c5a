# ==============================================
# Instruction Set Vocabulary
# ==============================================
#
# PURPOSE:
#   Map ABI names (as reported by the platform) to the instruction
#   set names used in the usage file. The table only ever records
#   ISAs that come out of this mapping.
#
# FUNCTIONS:
# ----------
# - instruction_set_for_abi(abi) -> str
# - supported_isas(abis) -> frozenset[str]
#
# ==============================================

from typing import Dict, FrozenSet, Iterable


ABI_TO_ISA: Dict[str, str] = {
    "armeabi": "arm",
    "armeabi-v7a": "arm",
    "arm64-v8a": "arm64",
    "x86": "x86",
    "x86_64": "x86_64",
    "mips": "mips",
    "mips64": "mips64",
    "riscv64": "riscv64",
}


def instruction_set_for_abi(abi: str) -> str:
    """
    Resolve the instruction set for an ABI name.

    Args:
        abi: ABI name, e.g. "arm64-v8a"

    Returns:
        The instruction set name, e.g. "arm64"

    Raises:
        ValueError: if the ABI is unknown
    """
    try:
        return ABI_TO_ISA[abi.strip()]
    except KeyError:
        raise ValueError(f"Unsupported ABI: {abi}") from None


def supported_isas(abis: Iterable[str]) -> FrozenSet[str]:
    """Instruction sets for a list of ABIs, deduplicated."""
    return frozenset(instruction_set_for_abi(abi) for abi in abis)
