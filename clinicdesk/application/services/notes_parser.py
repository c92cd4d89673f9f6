"""Helpers for the ``Type: <value>`` tag that staff write into appointment notes.

Front-desk staff often write the visit category straight into the notes
("Type: Root Canal, patient anxious").  These helpers pull the category out
so it can live in ``appointment_type`` and leave the rest of the note intact.
"""
import re
from dataclasses import dataclass
from typing import Any, Optional

from ..view_models import field_value

TYPE_TAG_RE = re.compile(r"(type)\s*[:\-]?\s*([A-Za-z0-9_\- ]+)", re.IGNORECASE)
LEADING_SEPARATOR_RE = re.compile(r"^\s*[\-,:]\s*")
WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ParsedNotes:
    type: Optional[str]
    cleaned: str


def normalize_label(value: Any) -> str:
    """Underscores to spaces, runs of whitespace collapsed, trimmed."""
    text = str(value).replace("_", " ")
    return WHITESPACE_RE.sub(" ", text).strip()


def title_case(value: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() if w else w for w in value.split(" "))


def parse_type_from_notes(notes: Optional[str]) -> ParsedNotes:
    """Extract the first type tag from ``notes``.

    Returns the normalised tag value (``None`` when there is no tag) and the
    note text with the tag and one dangling separator removed.
    """
    if not notes:
        return ParsedNotes(type=None, cleaned="")
    text = str(notes)
    match = TYPE_TAG_RE.search(text)
    if not match:
        return ParsedNotes(type=None, cleaned=text.strip())

    tag_type = normalize_label(match.group(2) or "")
    cleaned = text.replace(match.group(0), "", 1)
    cleaned = LEADING_SEPARATOR_RE.sub("", cleaned, count=1).strip()
    return ParsedNotes(type=tag_type or None, cleaned=cleaned)


def display_type(appointment: Any) -> str:
    """Human label for an appointment's category, e.g. ``root_canal`` -> ``Root Canal``.

    A tag embedded in the notes wins over the structured ``appointment_type``.
    """
    parsed = parse_type_from_notes(field_value(appointment, "notes"))
    base = parsed.type or field_value(appointment, "appointment_type") or ""
    return title_case(normalize_label(base))


def cleaned_notes(appointment: Any) -> str:
    parsed = parse_type_from_notes(field_value(appointment, "notes"))
    # notes that held nothing but the tag should not echo the type back
    if parsed.type and (not parsed.cleaned or parsed.cleaned == parsed.type):
        return ""
    return parsed.cleaned
