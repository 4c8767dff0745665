"""Machine type aliases and operator/work compatibility."""

import re
from dataclasses import dataclass

MULTI_SKILL = "multi-skill"

MACHINE_ALIASES = {
    "single-needle": ["single-needle", "singleneedle", "single_needle", "sn", "single needle"],
    "overlock": ["overlock", "over-lock", "over_lock", "ol", "over lock"],
    "flatlock": ["flatlock", "flat-lock", "flat_lock", "fl", "flat lock"],
    "kansai": ["kansai", "kansai-special", "kansai_special", "ks"],
    "buttonhole": ["buttonhole", "button-hole", "button_hole", "bh", "button hole"],
    "double-needle": ["double-needle", "doubleneedle", "double_needle", "dn", "double needle"],
    "cutting": ["cutting", "cutter", "cut", "knife"],
    "pressing": ["pressing", "press", "iron", "steam"],
    "inspection": ["inspection", "quality", "qc", "check"],
    "manual": ["manual", "hand", "finishing", "trim"],
    MULTI_SKILL: ["multi-skill", "multiskill", "multi_skill", "all", "universal"],
}

_STRIP = re.compile(r"[-_\s]")


def _squash(name: str) -> str:
    return _STRIP.sub("", name.strip().lower())


_LOOKUP = {
    _squash(alias): standard
    for standard, aliases in MACHINE_ALIASES.items()
    for alias in aliases
}


def normalize_machine_type(name):
    """Map any spelling of a machine (``singleNeedle``, ``SN``...) to its standard name.

    Unknown names come back squashed (lowercase, no separators); empty input
    gives ``None``.
    """
    if not name or not str(name).strip():
        return None
    squashed = _squash(str(name))
    return _LOOKUP.get(squashed, squashed)


@dataclass(frozen=True)
class Compatibility:
    compatible: bool
    reason: str


def check_compatibility(operator_machine, work_machine) -> Compatibility:
    op = normalize_machine_type(operator_machine)
    work = normalize_machine_type(work_machine)

    if op == MULTI_SKILL:
        return Compatibility(True, "Multi-skill operator can handle any work type")
    if not op:
        return Compatibility(False, "Operator machine type not specified")
    if not work:
        return Compatibility(False, "Work item machine type not specified")
    if op == work:
        return Compatibility(True, f"Exact machine match: {op}")
    return Compatibility(False, f"Machine mismatch: operator has {op}, work requires {work}")
