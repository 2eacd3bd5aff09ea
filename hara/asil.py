# hara/asil.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

SEVERITIES: Tuple[int, ...] = (0, 1, 2, 3)          # S0..S3
EXPOSURES: Tuple[int, ...] = (0, 1, 2, 3, 4)        # E0..E4
CONTROLLABILITIES: Tuple[int, ...] = (0, 1, 2, 3)   # C0..C3


class ASIL(str, Enum):
    QM = "QM"
    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @property
    def rank(self) -> int:
        return _ASIL_ORDER.index(self)

    def __str__(self) -> str:
        return self.value


_ASIL_ORDER: List[ASIL] = [ASIL.QM, ASIL.A, ASIL.B, ASIL.C, ASIL.D]

# Calibration anchors from the LKAS worked examples
_ANCHORS = {
    (3, 4, 3): ASIL.D,
    (2, 3, 1): ASIL.B,
    (1, 2, 0): ASIL.QM,
}

# severity -> (high, mid, low) classes
_TIERS = {
    3: (ASIL.D, ASIL.C, ASIL.B),
    2: (ASIL.C, ASIL.B, ASIL.A),
    1: (ASIL.B, ASIL.A, ASIL.QM),
}


def _check(name: str, value: int, allowed: Tuple[int, ...]) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value not in allowed:
        raise ValueError(f"{name} must be one of {list(allowed)}, got {value!r}")
    return value


@dataclass(frozen=True)
class RiskRating:
    s: int
    e: int
    c: int

    def __post_init__(self) -> None:
        _check("severity", self.s, SEVERITIES)
        _check("exposure", self.e, EXPOSURES)
        _check("controllability", self.c, CONTROLLABILITIES)


def calculate_asil(severity: int, exposure: int, controllability: int) -> ASIL:
    """
    Example-anchored ASIL lookup. The three LKAS examples map exactly; every
    other combination goes through a conservative per-severity heuristic
    (not the normative ISO 26262-3 Table 4).
    """
    _check("severity", severity, SEVERITIES)
    _check("exposure", exposure, EXPOSURES)
    _check("controllability", controllability, CONTROLLABILITIES)

    anchored = _ANCHORS.get((severity, exposure, controllability))
    if anchored is not None:
        return anchored

    tier = _TIERS.get(severity)
    if tier is None:  # S0
        return ASIL.QM
    high, mid, low = tier
    if exposure >= 3 and controllability >= 2:
        return high
    if exposure >= 2 and controllability >= 1:
        return mid
    return low


def asil_risk_matrix_markdown() -> str:
    """Four compact GFM tables, one per controllability level (C0..C3)."""
    sections: List[str] = []
    for c in CONTROLLABILITIES:
        header = ["S \\ E"] + [f"E{e}" for e in EXPOSURES]
        lines = [
            f"| {' | '.join(header)} |",
            f"| {' | '.join(':---' for _ in header)} |",
        ]
        for s in SEVERITIES:
            cells = [f"S{s}"] + [calculate_asil(s, e, c).value for e in EXPOSURES]
            lines.append(f"| {' | '.join(cells)} |")
        sections.append(f"**Controllability: C{c}**\n\n" + "\n".join(lines))
    return "\n\n".join(sections)


@dataclass(frozen=True)
class HazardRow:
    id: str
    malfunction_behavior: str
    operational_situation: str
    hazard_description: str
    rating: RiskRating
    safety_goal: str

    @property
    def asil(self) -> ASIL:
        # always derived, never stored
        return calculate_asil(self.rating.s, self.rating.e, self.rating.c)
