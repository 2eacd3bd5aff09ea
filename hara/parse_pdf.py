# hara/parse_pdf.py
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

import fitz


class ExtractionError(RuntimeError):
    """The uploaded bytes could not be turned into text."""


def extract_pdf_text(content: bytes) -> str:
    """Plain text of every page, page breaks collapsed to blank lines."""
    # Preserve whitespace / ligatures if available (older PyMuPDF may not have these flags)
    flags = 0
    for name in ("TEXT_PRESERVE_LIGATURES", "TEXT_PRESERVE_WHITESPACE"):
        flags |= getattr(fitz, name, 0)

    texts: List[str] = []
    try:
        doc = fitz.open(stream=content, filetype="pdf")
    except Exception as e:
        raise ExtractionError(str(e)) from e
    try:
        with doc:
            for page in doc:
                try:
                    txt = page.get_text("text", flags=flags)
                except TypeError:
                    # Fallback for older versions that don't support flags arg
                    txt = page.get_text("text")
                texts.append((txt or "").strip())
    except Exception as e:
        raise ExtractionError(str(e)) from e
    return "\n\n".join(texts)


# --- item metadata heuristics ---------------------------------------------------

_NAME_LABEL_RE = re.compile(r"(?:Item\s*Name|System\s*Name|Product)\s*[:\-]?\s*(.+)", re.I)
_ID_LABEL_RE = re.compile(r"(?:Item\s*ID|System\s*ID|Part\s*Number|Doc\s*ID)\s*[:\-]\s*([A-Za-z0-9_.\-]+)", re.I)

# e.g. "Advanced Driver Assistance Module (ADAM)"
_ACRONYM_RE = re.compile(r"\([A-Z0-9]{2,}\)")

GENERIC_TITLES: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.I) for p in (
        r"^item\s*definition$",
        r"^functional\s*description$",
        r"^system\s*overview$",
        r"^introduction$",
        r"^table\s*of\s*contents$",
        r"^document(\s+.*)?$",
        r"^contents$",
        r"^abstract$",
        r"^scope$",
        r"^purpose$",
        r"^requirements?$",
    )
)

DOMAIN_KEYWORDS_RE = re.compile(r"module|system|assistance|driver|lane|steer|control|steering", re.I)


@dataclass(frozen=True)
class ExtractionConfig:
    generic_titles: Tuple[re.Pattern, ...] = GENERIC_TITLES
    domain_keywords: re.Pattern = DOMAIN_KEYWORDS_RE
    default_name: str = "LKAS G2.0"
    missing_id: str = "N/A"
    min_title_len: int = 12
    min_name_len: int = 6
    title_scan_lines: int = 80
    pair_scan_lines: int = 120
    fallback_filename_name: str = "Uploaded Item"

    def is_generic(self, s: str) -> bool:
        t = (s or "").strip()
        return any(r.search(t) for r in self.generic_titles)


DEFAULT_EXTRACTION = ExtractionConfig()


@dataclass(frozen=True)
class ItemMetadata:
    name: str
    item_id: str
    # label | title | adjacent | first_line | default
    name_source: str = "default"

    @property
    def name_found(self) -> bool:
        return self.name_source != "default"


@dataclass(frozen=True)
class NameVerdict:
    accepted: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.accepted


def check_item_name(name: Optional[str], config: ExtractionConfig = DEFAULT_EXTRACTION) -> NameVerdict:
    """Ordered weak-name rules; the first one that fires is the rejection reason."""
    t = (name or "").strip()
    if not t:
        return NameVerdict(False, "empty")
    if t == config.missing_id:
        return NameVerdict(False, "sentinel")
    if len(t) < config.min_name_len:
        return NameVerdict(False, "too_short")
    if config.is_generic(t):
        return NameVerdict(False, "generic")
    return NameVerdict(True)


def is_weak_name(name: Optional[str], config: ExtractionConfig = DEFAULT_EXTRACTION) -> bool:
    return not check_item_name(name, config).accepted


def _title_candidate(lines: List[str], config: ExtractionConfig) -> str:
    def ok(line: str) -> bool:
        return len(line) >= config.min_title_len and not config.is_generic(line)

    candidates = lines[: config.title_scan_lines]
    # Prefer lines with an acronym in parentheses
    for line in candidates:
        if _ACRONYM_RE.search(line) and ok(line):
            return line
    for line in candidates:
        if config.domain_keywords.search(line) and ok(line):
            return line
    return ""


def _adjacent_candidate(lines: List[str], config: ExtractionConfig) -> str:
    # "... Assistance" + "Module (ADAM)"
    for i in range(1, min(len(lines), config.pair_scan_lines)):
        prev, curr = lines[i - 1], lines[i]
        if _ACRONYM_RE.search(curr) and not config.is_generic(curr):
            candidate = f"{prev} {curr}".strip()
            if len(candidate) >= config.min_title_len and not config.is_generic(candidate):
                return candidate
    return ""


def extract_item_metadata(text: str, config: ExtractionConfig = DEFAULT_EXTRACTION) -> ItemMetadata:
    """
    Best-effort guess of the item name/id from item definition text.
    Never raises; falls back to the configured default name and "N/A".
    """
    lines = [ln.strip() for ln in re.split(r"\r?\n", text or "")]
    lines = [ln for ln in lines if ln]
    joined = "\n".join(lines)

    name_m = _NAME_LABEL_RE.search(joined)
    id_m = _ID_LABEL_RE.search(joined)
    item_name = name_m.group(1).strip() if name_m else ""
    item_id = id_m.group(1).strip() if id_m else ""
    source = "label" if item_name else "default"

    if not item_name:
        item_name = _title_candidate(lines, config)
        source = "title" if item_name else source
    if not item_name:
        item_name = _adjacent_candidate(lines, config)
        source = "adjacent" if item_name else source
    if not item_name and lines:
        item_name, source = lines[0], "first_line"
    if item_name and config.is_generic(item_name):
        item_name, source = "", "default"

    return ItemMetadata(
        name=item_name or config.default_name,
        item_id=item_id or config.missing_id,
        name_source=source if item_name else "default",
    )


def name_from_filename(filename: Optional[str], config: ExtractionConfig = DEFAULT_EXTRACTION) -> str:
    """'LKAS_Draft_v2.pdf' -> 'LKAS Draft v2'."""
    stripped = re.sub(r"\.[^./\\]+$", "", filename or "")
    return re.sub(r"[._\-]+", " ", stripped).strip() or config.fallback_filename_name
