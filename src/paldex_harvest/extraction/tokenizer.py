# ABOUTME: Minimal streaming HTML tokenizer emitting start/end/text tokens with source offsets
# ABOUTME: Tolerates malformed markup; skips comments and treats script/style bodies as raw text

import re
from collections.abc import Iterator
from dataclasses import dataclass

# Quoted attribute values may contain '>' (e.g. JSON payloads); unquoted text may not.
_TAG_RE = re.compile(
    r"""<(?P<close>/)?(?P<name>[A-Za-z][A-Za-z0-9:_-]*)(?P<attrs>(?:"[^"]*"|'[^']*'|[^'">])*)>""",
    re.DOTALL,
)
_COMMENT_RE = re.compile(r"<!--.*?(?:-->|$)", re.DOTALL)
_DECL_RE = re.compile(r"<[!?][^>]*>?")

_ATTR_RE = re.compile(
    r"""(?P<key>[^\s"'<>/=]+)(?:\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'>]+)))?""",
)

RAW_TEXT_ELEMENTS = frozenset({"script", "style", "textarea"})
VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)


@dataclass(frozen=True, slots=True)
class StartTag:
    name: str
    attrs_text: str
    start: int
    end: int
    self_closing: bool

    def attrs(self) -> dict[str, str]:
        return parse_attributes(self.attrs_text)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.attrs().get(key.lower(), default)


@dataclass(frozen=True, slots=True)
class EndTag:
    name: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class Text:
    text: str
    start: int
    end: int


Token = StartTag | EndTag | Text


def parse_attributes(attrs_text: str) -> dict[str, str]:
    """Parse the raw attribute text of a start tag. Keys are lower-cased; the first occurrence wins."""
    attrs: dict[str, str] = {}
    for match in _ATTR_RE.finditer(attrs_text or ""):
        key = match.group("key").lower()
        if key in attrs:
            continue
        value = match.group("dq")
        if value is None:
            value = match.group("sq")
        if value is None:
            value = match.group("bare") or ""
        attrs[key] = value
    return attrs


def _ends_with_self_close(attrs_text: str) -> bool:
    # "/>" counts only when the slash is not the tail of an unquoted value like href=/en/
    stripped = attrs_text.rstrip()
    if not stripped.endswith("/"):
        return False
    return len(stripped) == 1 or stripped[-2] in " \t\r\n\"'"


def tokenize(html: str, start: int = 0) -> Iterator[Token]:
    """Yield tokens from ``html`` beginning at offset ``start``.

    Anything that does not parse as a tag is emitted as text, so the token
    stream always covers the input. End tags for raw-text elements close the
    raw body; everything before them is a single Text token.
    """
    pos = start
    length = len(html)

    while pos < length:
        lt = html.find("<", pos)
        if lt < 0:
            yield Text(html[pos:], pos, length)
            return
        if lt > pos:
            yield Text(html[pos:lt], pos, lt)

        if html.startswith("<!--", lt):
            comment = _COMMENT_RE.match(html, lt)
            pos = comment.end() if comment else length
            continue

        match = _TAG_RE.match(html, lt)
        if match is None:
            decl = _DECL_RE.match(html, lt) if lt + 1 < length and html[lt + 1] in "!?" else None
            if decl is not None:
                pos = decl.end()
                continue
            # A stray '<' is just text
            yield Text("<", lt, lt + 1)
            pos = lt + 1
            continue

        name = match.group("name").lower()
        if match.group("close"):
            yield EndTag(name, lt, match.end())
            pos = match.end()
            continue

        attrs_text = match.group("attrs")
        self_closing = name in VOID_ELEMENTS or _ends_with_self_close(attrs_text)
        yield StartTag(name, attrs_text, lt, match.end(), self_closing)
        pos = match.end()

        if name in RAW_TEXT_ELEMENTS and not self_closing:
            close = re.compile(rf"</{name}\s*>", re.IGNORECASE).search(html, pos)
            body_end = close.start() if close else length
            if body_end > pos:
                yield Text(html[pos:body_end], pos, body_end)
            if close is None:
                return
            yield EndTag(name, close.start(), close.end())
            pos = close.end()
