# hara/pipeline.py
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from fastapi.concurrency import run_in_threadpool

from hara import ai
from hara.hardcoded import hardcoded_lkas_report
from hara.parse_pdf import (
    DEFAULT_EXTRACTION,
    ExtractionConfig,
    check_item_name,
    extract_item_metadata,
    extract_pdf_text,
    is_weak_name,
    name_from_filename,
)
from hara.report import DEFAULT_REPORT, ReportConfig, merge_hazard_rows, render_hara_markdown
from hara.settings import Settings

log = logging.getLogger("hara")


@dataclass(frozen=True)
class HaraResult:
    markdown: str
    item_name: str
    item_id: str
    used_llm: bool


async def _soft(label: str, fn: Callable[..., Any], *args) -> Optional[Any]:
    """Run a blocking LLM call in the threadpool; failures are logged and become None."""
    try:
        return await run_in_threadpool(fn, *args)
    except Exception:
        log.warning("LLM %s unavailable, continuing without it", label, exc_info=True)
        return None


async def generate_hara_from_text(
    text: str,
    filename: str,
    settings: Settings,
    extraction: ExtractionConfig = DEFAULT_EXTRACTION,
    report: ReportConfig = DEFAULT_REPORT,
) -> HaraResult:
    meta = extract_item_metadata(text, extraction)
    item_name = meta.name if meta.name_found else ""
    item_id = meta.item_id
    log.info("Heuristic metadata: name=%r (%s) id=%r", meta.name, meta.name_source, item_id)

    summary, proposed = await asyncio.gather(
        _soft("summary", ai.summarize_item_from_pdf_text, text, settings),
        _soft("hazard proposals", ai.propose_additional_hazards, text, settings),
    )
    used_llm = bool(summary) or bool(proposed)

    # Weak name or missing id: ask the model
    if is_weak_name(item_name, extraction) or not item_id or item_id == extraction.missing_id:
        llm_meta = await _soft("metadata", ai.extract_item_metadata_llm, text, settings)
        if llm_meta is not None:
            used_llm = True
            # Only take values that improve on what the heuristics found
            if check_item_name(llm_meta.item_name, extraction).accepted:
                item_name = llm_meta.item_name
            if llm_meta.item_id and llm_meta.item_id != extraction.missing_id:
                item_id = llm_meta.item_id

    if is_weak_name(item_name, extraction):
        item_name = name_from_filename(filename, extraction)
        log.info("Item name fell back to file name: %r", item_name)

    rows = merge_hazard_rows(report.baseline_rows, proposed)
    log.info("HARA rows: %d baseline + %d proposed", len(report.baseline_rows), len(rows) - len(report.baseline_rows))

    if settings.hardcoded_report:
        hard = hardcoded_lkas_report()
        return HaraResult(hard["markdown"], hard["item_name"], hard["item_id"], used_llm=False)

    markdown = render_hara_markdown(item_name, item_id, summary, rows, report)
    return HaraResult(markdown, item_name, item_id, used_llm)


async def generate_hara(
    content: bytes,
    filename: str,
    settings: Settings,
    extraction: ExtractionConfig = DEFAULT_EXTRACTION,
    report: ReportConfig = DEFAULT_REPORT,
) -> HaraResult:
    """PDF bytes -> HARA Markdown. Extraction errors propagate to the caller."""
    text = await run_in_threadpool(extract_pdf_text, content)
    log.info("Extracted %d chars from %s", len(text), filename)
    return await generate_hara_from_text(text, filename, settings, extraction, report)
