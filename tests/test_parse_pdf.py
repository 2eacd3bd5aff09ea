import re

import fitz
import pytest

from hara.parse_pdf import (
    ExtractionConfig,
    ExtractionError,
    check_item_name,
    extract_item_metadata,
    extract_pdf_text,
    is_weak_name,
    name_from_filename,
)


def _pdf_bytes(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def test_labeled_name_and_id():
    meta = extract_item_metadata("Item Name: Foo Bar\nItem ID: XY-100\nSome body text")
    assert (meta.name, meta.item_id) == ("Foo Bar", "XY-100")
    assert meta.name_source == "label"


def test_alternate_labels():
    meta = extract_item_metadata("System Name - Brake Controller\nPart Number: BC_77.3")
    assert meta.name == "Brake Controller"
    assert meta.item_id == "BC_77.3"


def test_empty_text_returns_defaults():
    meta = extract_item_metadata("")
    assert meta.name  # non-empty default
    assert meta.item_id == "N/A"
    assert not meta.name_found


def test_acronym_title_preferred_over_keyword_line():
    text = "\n".join([
        "Item Definition",
        "Steering control overview for the platform",
        "Advanced Driver Assistance Module (ADAM)",
    ])
    meta = extract_item_metadata(text)
    assert meta.name == "Advanced Driver Assistance Module (ADAM)"
    assert meta.name_source == "title"


def test_keyword_title_when_no_acronym():
    meta = extract_item_metadata("Introduction\nLane centering control function\nfoo")
    assert meta.name == "Lane centering control function"


def test_adjacent_lines_combined():
    # second line alone is too short to be a title
    meta = extract_item_metadata("Introduction\nAdvanced Parking Helper\nUnit (APH)\nbody")
    assert meta.name == "Advanced Parking Helper Unit (APH)"
    assert meta.name_source == "adjacent"


def test_first_line_fallback():
    meta = extract_item_metadata("Wiper Thing\nabc")
    assert meta.name == "Wiper Thing"
    assert meta.name_source == "first_line"


def test_generic_first_line_discarded():
    meta = extract_item_metadata("Scope\nabc")
    assert meta.name == ExtractionConfig().default_name
    assert meta.name_source == "default"


def test_generic_titles_can_be_overridden_per_call():
    config = ExtractionConfig(generic_titles=(re.compile(r"^wiper thing$", re.I),), default_name="Unnamed")
    meta = extract_item_metadata("Wiper Thing", config)
    assert meta.name == "Unnamed"


@pytest.mark.parametrize("name,reason", [
    ("", "empty"),
    ("   ", "empty"),
    ("N/A", "sentinel"),
    ("LKAS", "too_short"),
    ("Table of Contents", "generic"),
    ("Document revision 3", "generic"),
])
def test_weak_name_reasons(name, reason):
    verdict = check_item_name(name)
    assert not verdict.accepted
    assert verdict.reason == reason
    assert is_weak_name(name)


def test_strong_name_accepted():
    verdict = check_item_name("Lane Keeping Assist")
    assert verdict.accepted and verdict.reason is None
    assert not is_weak_name("Lane Keeping Assist")


@pytest.mark.parametrize("filename,expected", [
    ("LKAS_Draft_v2.pdf", "LKAS Draft v2"),
    ("brake-ctrl.item.def.pdf", "brake ctrl item def"),
    ("___.pdf", "Uploaded Item"),
    ("", "Uploaded Item"),
])
def test_name_from_filename(filename, expected):
    assert name_from_filename(filename) == expected


def test_extract_pdf_text_joins_pages():
    text = extract_pdf_text(_pdf_bytes("Item Name: Foo Bar", "Item ID: XY-100"))
    assert "Item Name: Foo Bar" in text
    assert "\n\n" in text
    assert extract_item_metadata(text).item_id == "XY-100"


def test_extract_pdf_text_rejects_garbage():
    with pytest.raises(ExtractionError):
        extract_pdf_text(b"definitely not a pdf")


def test_extract_pdf_text_page_failure(monkeypatch):
    def broken(self, *args, **kwargs):
        raise RuntimeError("damaged content stream")

    monkeypatch.setattr(fitz.Page, "get_text", broken)
    with pytest.raises(ExtractionError, match="damaged content stream"):
        extract_pdf_text(_pdf_bytes("Item Name: Foo Bar"))


TITLE = "Advanced Driver Assistance Module (ADAM)"


def test_title_scan_stops_after_80_lines():
    filler = ["x"] * 79
    assert extract_item_metadata("\n".join(filler + [TITLE])).name_source == "title"

    # one line further only the adjacent-pair scan reaches it
    meta = extract_item_metadata("\n".join(filler + ["x", TITLE]))
    assert meta.name_source == "adjacent"
    assert meta.name == "x " + TITLE


def test_adjacent_scan_stops_after_120_lines():
    filler = ["x"] * 119
    meta = extract_item_metadata("\n".join(filler + ["Unit (APH)"]))
    assert (meta.name, meta.name_source) == ("x Unit (APH)", "adjacent")

    meta = extract_item_metadata("\n".join(filler + ["x", "Unit (APH)"]))
    assert (meta.name, meta.name_source) == ("x", "first_line")


def test_title_needs_twelve_chars():
    # acronym and keyword ("steer") both match
    meta = extract_item_metadata("Steer (LKA)")
    assert meta.name_source == "first_line"

    meta = extract_item_metadata("Steers (LKA)")
    assert (meta.name, meta.name_source) == ("Steers (LKA)", "title")
