# ABOUTME: Text helpers for markup fragments: entity decoding, tag stripping, whitespace and number parsing
# ABOUTME: Every helper is total: bad input yields None or an empty string, never an exception

import html
import math
import re
from collections.abc import Iterable

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLOCK_CLOSE_RE = re.compile(
    r"</(?:p|div|section|article|header|footer|li|ul|ol|h[1-6]|table|tr|td|th|thead|tbody)\s*>", re.IGNORECASE
)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"[-+]?\d[\d,]*(?:\.\d+)?|[-+]?\.\d+")
_QTY_RE = re.compile(r"\d[\d,]*(?:\.\d+)?")

Pattern = str | re.Pattern[str]


def clean_text(value: str | None) -> str:
    """Collapse whitespace runs (including non-breaking spaces) and trim."""
    if not value:
        return ""
    return _WS_RE.sub(" ", value).strip()


def decode_entities(value: str | None) -> str:
    return html.unescape(value or "")


def html_to_text(fragment: str | None) -> str:
    """Strip tags from a fragment and return its readable, whitespace-normalized text."""
    if not fragment:
        return ""
    text = _SCRIPT_STYLE_RE.sub(" ", fragment)
    text = _BREAK_RE.sub(" ", text)
    text = _BLOCK_CLOSE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    return clean_text(decode_entities(text))


def text_or_none(fragment: str | None) -> str | None:
    return html_to_text(fragment) or None


def first_match(source: str | None, patterns: Iterable[Pattern], flags: int = re.IGNORECASE | re.DOTALL) -> str | None:
    """Try each pattern in order and return the first non-empty capture.

    Group 1 is returned when the pattern has a group (the first non-None group
    when it has several alternatives), otherwise the whole match.
    """
    if not source:
        return None
    for pattern in patterns:
        regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, flags)
        match = regex.search(source)
        if match is None:
            continue
        groups = [g for g in match.groups() if g is not None] if match.groups() else [match.group(0)]
        value = groups[0].strip() if groups else ""
        if value:
            return value
    return None


def parse_number(value: str | float | int | None, *, integer: bool = False) -> int | float | None:
    """Parse a number from page text. Thousands separators are ignored; NaN/inf and junk give None.

    With ``integer=True`` the value is truncated toward zero.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            match = _NUMBER_RE.search(clean_text(str(value)))
            if match is None:
                return None
            number = float(match.group(0).replace(",", ""))
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    if integer:
        return int(number)
    return int(number) if number.is_integer() and not isinstance(value, float) else number


def parse_qty(value: str | float | int | None) -> int | None:
    """Parse a quantity such as ``"x3"``, ``"1,200"`` or ``12``. Negative or non-numeric values give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = parse_number(value, integer=True)
    else:
        text = clean_text(str(value))
        match = _QTY_RE.search(text)
        if match is None:
            return None
        # "-3" is an invalid quantity, not 3
        if match.start() > 0 and text[match.start() - 1] == "-":
            return None
        number = parse_number(match.group(0), integer=True)
    if number is None or number < 0:
        return None
    return int(number)


def dedupe_by(items: Iterable, key) -> list:
    """Keep the first item for each key, preserving order."""
    seen: set = set()
    out = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out
