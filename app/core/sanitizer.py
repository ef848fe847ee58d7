"""
Output sanitization for model answers.

Turns raw model text into display text:
- Hidden reasoning ("think") blocks are removed
- Line endings are normalized and emphasis asterisks dropped
- Known section headings are re-marked as <strong> titles
- Runs of blank lines are collapsed

Pure functions only: no I/O, no logging, no shared state.
"""

import re
from enum import Enum
from typing import Any, List, Optional


class SectionHeading(str, Enum):
    """Section titles the model is instructed to use."""
    SUMMARY = "summary"
    DETAILED_FINDINGS = "detailed findings"
    POSSIBLE_DIAGNOSES = "possible diagnoses/considerations"
    RISK_LEVEL = "risk level"
    RED_FLAGS = "red flags"
    NEXT_STEPS = "next steps"
    RECOMMENDATIONS = "recommendations"
    INTERPRETATION = "interpretation"
    IMPRESSION = "impression"


KNOWN_HEADINGS = frozenset(heading.value for heading in SectionHeading)


# Bracket lookalikes used around "think": ASCII angle, white/black triangles,
# mathematical angle, CJK angle, angle quotes, ornamental angle
_OPEN_BRACKETS = "<\u25C1\u25C0\u27E8\u3008\u2329\u2039\u276C"
_CLOSE_BRACKETS = ">\u25B7\u25B6\u27E9\u3009\u232A\u203A\u276D"
_UNICODE_OPEN = _OPEN_BRACKETS[1:]
_UNICODE_CLOSE = _CLOSE_BRACKETS[1:]

_BLOCK_PATTERNS = [
    re.compile(r"<\s*think\b[\s\S]*?<\s*/\s*think\s*>", re.IGNORECASE),
    re.compile(r"<\s*think\b[\s\S]*?<\s*\\\s*think\s*>", re.IGNORECASE),
    re.compile(r"<\|\s*think\s*\|>[\s\S]*?<\|\s*/?\s*think\s*\|>", re.IGNORECASE),
    re.compile(r"\[\s*think\s*\][\s\S]*?\[\s*/\s*think\s*\]", re.IGNORECASE),
    re.compile(
        rf"[{_UNICODE_OPEN}]\s*think\s*[{_UNICODE_CLOSE}][\s\S]*?"
        rf"[{_UNICODE_OPEN}]\s*/\s*think\s*[{_UNICODE_CLOSE}]",
        re.IGNORECASE,
    ),
]

_TRIANGLE_OPEN = re.compile(
    rf"[{_OPEN_BRACKETS}]\s*think\s*[{_CLOSE_BRACKETS}]", re.IGNORECASE
)
_TRIANGLE_CLOSE = re.compile(
    rf"[{_OPEN_BRACKETS}]\s*/\s*think\s*[{_CLOSE_BRACKETS}]", re.IGNORECASE
)
_TRIANGLE_MARKER = re.compile(
    rf"[{_OPEN_BRACKETS}]\s*/?\s*think\s*[{_CLOSE_BRACKETS}]", re.IGNORECASE
)

# Any leftover opener or closer, whatever the family
_STRAY_MARKER = re.compile(
    r"<\s*[/\\]?\s*think\s*>"
    r"|<\|\s*/?\s*think\s*\|>"
    r"|\[\s*/?\s*think\s*\]"
    rf"|[{_OPEN_BRACKETS}]\s*/?\s*think\s*[{_CLOSE_BRACKETS}]",
    re.IGNORECASE,
)

_HEADING_PREFIX = re.compile(r"^\s*#{1,6}\s*")
_BULLET_PREFIX = re.compile(r"^\s*[-•]\s+")
_BLANK_RUN = re.compile(r"\n{3,}")


def _strip_unpaired_triangles(text: str) -> str:
    while True:
        opener = _TRIANGLE_OPEN.search(text)
        if opener is None:
            return text

        closer = _TRIANGLE_CLOSE.search(text, opener.end())
        if closer is None:
            # No closer anywhere: drop the markers, keep the surrounding text
            return _TRIANGLE_MARKER.sub("", text)

        text = text[:opener.start()] + text[closer.end():]


def _strip_stray_markers(text: str) -> str:
    # Removing one marker can splice two halves into a new one
    while True:
        cleaned = _STRAY_MARKER.sub("", text)
        if cleaned == text:
            return cleaned
        text = cleaned


def strip_reasoning(text: str) -> str:
    """
    Remove hidden reasoning blocks in every known delimiter family.

    Paired blocks are removed with everything between their markers.
    An opener without any closer only loses its markers.
    """
    for pattern in _BLOCK_PATTERNS:
        text = pattern.sub("", text)

    text = _strip_unpaired_triangles(text)
    return _strip_stray_markers(text)


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n")


def strip_emphasis(text: str) -> str:
    """Drop markdown bold/italic asterisks."""
    return text.replace("**", "").replace("*", "")


def heading_key(line: str) -> str:
    """Comparison key for a line: trimmed, one trailing colon removed, lower-cased."""
    return _heading_title(line).lower()


def _heading_title(line: str) -> str:
    title = line.strip()
    if title.endswith(":"):
        title = title[:-1]
    return title


def format_headings(lines: List[str]) -> List[str]:
    """
    Strip heading hashes and bullet markers, then re-mark known headings.

    A known heading becomes a <strong> line with a blank line on each side.
    The model's own casing is kept.
    """
    out: List[str] = []

    for raw in lines:
        line = _HEADING_PREFIX.sub("", raw, count=1)
        line = _BULLET_PREFIX.sub("", line, count=1)

        if heading_key(line) in KNOWN_HEADINGS:
            if out and out[-1] != "":
                out.append("")
            out.append(f"<strong>{_heading_title(line)}</strong>")
            out.append("")
            continue

        out.append(line)

    return out


def collapse_blank_lines(text: str) -> str:
    return _BLANK_RUN.sub("\n\n", text).strip()


def sanitize(raw_text: Optional[Any]) -> str:
    """
    Turn raw model output into display text.

    Accepts any input, including None, and never raises.

    Args:
        raw_text: Model answer as returned by the API

    Returns:
        Sanitized text with <strong> section titles and \\n line breaks
    """
    if raw_text is None:
        return ""

    text = raw_text if isinstance(raw_text, str) else str(raw_text)
    if not text:
        return ""

    text = strip_reasoning(text)
    text = normalize_line_endings(text)
    text = strip_emphasis(text)
    text = _strip_stray_markers(text)

    lines = format_headings(text.split("\n"))
    return collapse_blank_lines("\n".join(lines))


def to_html(display_text: Optional[str]) -> str:
    """Render sanitized text for the browser by turning line feeds into <br/>."""
    return (display_text or "").replace("\n", "<br/>")
