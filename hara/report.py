# hara/report.py
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from jinja2 import Template

from hara.asil import HazardRow, RiskRating, asil_risk_matrix_markdown

log = logging.getLogger("hara")

HARA_TABLE_HEADER: Tuple[str, ...] = (
    "ID",
    "Malfunction Behavior",
    "Operational Situation",
    "Hazardous Event Description",
    "S",
    "E",
    "C",
    "Calculated ASIL",
    "Safety Goal",
)

# Summaries that are really the model asking for input
_NON_ANSWER_RE = re.compile(r"please provide the text", re.I)
_NEWLINES_RE = re.compile(r"\n+")


def default_lkas_rows() -> List[HazardRow]:
    return [
        HazardRow(
            id="H-201",
            malfunction_behavior="Uncommanded Steering",
            operational_situation="Vehicle in lane-keeping at highway speeds",
            hazard_description="System applies unintended steering torque causing lane departure or collision",
            rating=RiskRating(3, 4, 3),
            safety_goal="SG-1: Prevent unintended steering torque beyond driver intent",
        ),
        HazardRow(
            id="H-202",
            malfunction_behavior="Loss of Assistance",
            operational_situation="Curved road segment requiring lane centering",
            hazard_description="Assist not available leading to degraded lane keeping and driver workload",
            rating=RiskRating(2, 3, 1),
            safety_goal="SG-2: Maintain controllable assist availability or prompt safe takeover",
        ),
        HazardRow(
            id="H-203",
            malfunction_behavior="Steering Vibration Malfunction",
            operational_situation="Urban low-speed driving",
            hazard_description="Erroneous haptic vibration without steering actuation",
            rating=RiskRating(1, 2, 0),
            safety_goal="Handled under QM processes; no ASIL safety goal required",
        ),
    ]


@dataclass(frozen=True)
class ReportConfig:
    baseline_rows: Tuple[HazardRow, ...] = field(default_factory=lambda: tuple(default_lkas_rows()))
    phase_label: str = "This report is the official output of the Concept Phase (ISO 26262)."
    min_summary_len: int = 16
    asil_criteria: Tuple[str, ...] = (
        "**Severity (S)**: S0 (no injuries) to S3 (life-threatening/fatal injuries)",
        "**Exposure (E)**: E0 (incredible) to E4 (high probability of occurrence)",
        "**Controllability (C)**: C0 (controllable in general) to C3 (difficult to control)",
    )
    safety_goal_summary: Tuple[str, ...] = (
        "**SG-1 (ASIL D)**: Prevent unintended steering torque beyond driver intent — FTTI: [TBD]",
        "**SG-2 (ASIL B)**: Maintain controllable assist availability or prompt safe takeover — FTTI: [TBD]",
    )


DEFAULT_REPORT = ReportConfig()


def clean_cell(value: str) -> str:
    # Escape pipes so the table does not break; soft-break embedded newlines
    return _NEWLINES_RE.sub(" <br/> ", (value or "").replace("|", "\\|")).strip()


def clean_summary(summary: Optional[str], config: ReportConfig = DEFAULT_REPORT) -> str:
    s = (summary or "").strip()
    if not s or _NON_ANSWER_RE.search(s) or len(s) < config.min_summary_len:
        return ""
    return s


def build_core_hara_table(rows: Iterable[HazardRow]) -> str:
    lines = [
        f"| {' | '.join(HARA_TABLE_HEADER)} |",
        f"| {' | '.join(':---' for _ in HARA_TABLE_HEADER)} |",
    ]
    for r in rows:
        lines.append(
            f"| {clean_cell(r.id)} | {clean_cell(r.malfunction_behavior)} | {clean_cell(r.operational_situation)} "
            f"| {clean_cell(r.hazard_description)} | S{r.rating.s} | E{r.rating.e} | C{r.rating.c} "
            f"| ASIL {r.asil.value} | {clean_cell(r.safety_goal)} |"
        )
    return "\n".join(lines)


def merge_hazard_rows(baseline: Sequence[HazardRow], proposed: Optional[Iterable]) -> List[HazardRow]:
    """
    Append proposals whose id and malfunction behavior (case-insensitive) are new.
    `proposed` items only need id/malfunction_behavior/.../s/e/c/safety_goal attributes;
    the ASIL is always recomputed from the rating.
    """
    combined: List[HazardRow] = list(baseline)
    seen_ids = {r.id for r in combined}
    seen_behaviors = {r.malfunction_behavior.lower() for r in combined}
    for p in proposed or []:
        if p.id in seen_ids or p.malfunction_behavior.lower() in seen_behaviors:
            log.info("Skipping proposed hazard %s (duplicate of an existing row)", p.id)
            continue
        combined.append(HazardRow(
            id=p.id,
            malfunction_behavior=p.malfunction_behavior,
            operational_situation=p.operational_situation,
            hazard_description=p.hazard_description,
            rating=RiskRating(p.s, p.e, p.c),
            safety_goal=p.safety_goal,
        ))
        seen_ids.add(p.id)
        seen_behaviors.add(p.malfunction_behavior.lower())
    return combined


REPORT_TEMPLATE = Template("""\
# {{ item_name }} HARA Report

## Project Context
- **Item Name**: {{ item_name }}
- **Item ID**: {{ item_id }}
- **Phase**: {{ phase_label }}
{% if summary %}

### Item Summary (from uploaded PDF)
{{ summary }}
{% endif %}

## ASIL Determination Criteria
{% for line in criteria %}
- {{ line }}
{% endfor %}

### ASIL Risk Matrix (S/E/C → ASIL)
{{ matrix }}

## The Core HARA Table
{{ table }}

## Safety Goal Summary
{% for line in goals %}
- {{ line }}
{% endfor %}
""", trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=False)


def render_hara_markdown(
    item_name: str,
    item_id: str,
    item_summary: Optional[str] = None,
    rows: Optional[Sequence[HazardRow]] = None,
    config: ReportConfig = DEFAULT_REPORT,
) -> str:
    if rows is None:
        rows = config.baseline_rows
    return REPORT_TEMPLATE.render(
        item_name=item_name,
        item_id=item_id,
        phase_label=config.phase_label,
        summary=clean_summary(item_summary, config),
        criteria=config.asil_criteria,
        matrix=asil_risk_matrix_markdown(),
        table=build_core_hara_table(rows),
        goals=config.safety_goal_summary,
    )
