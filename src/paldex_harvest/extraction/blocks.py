# ABOUTME: Balanced tag-block extraction over raw HTML without a DOM
# ABOUTME: Finds elements by class token and slices them up to their correctly nested closing tag

from collections.abc import Iterator

from paldex_harvest.extraction.tokenizer import EndTag, StartTag, tokenize


def class_matches(tag: StartTag, class_token: str | None) -> bool:
    """True when every whitespace-separated part of ``class_token`` occurs in the tag's class attribute.

    Matching is a case-insensitive substring test, so ``"card itemPopup"``
    matches ``class="itemPopup card"`` as well as ``class="card itemPopup-lg"``.
    A ``None`` token matches any tag, with or without a class.
    """
    if class_token is None:
        return True
    class_value = tag.get("class")
    if class_value is None:
        return False
    haystack = class_value.lower()
    parts = class_token.lower().split()
    return bool(parts) and all(part in haystack for part in parts)


def _find_opener(html: str, pos: int, class_token: str | None, tag: str) -> StartTag | None:
    for token in tokenize(html, pos):
        if isinstance(token, StartTag) and token.name == tag and class_matches(token, class_token):
            return token
    return None


def _find_balanced_end(html: str, opener: StartTag, tag: str) -> int | None:
    depth = 1
    for token in tokenize(html, opener.end):
        if isinstance(token, StartTag) and token.name == tag and not token.self_closing:
            depth += 1
        elif isinstance(token, EndTag) and token.name == tag:
            depth -= 1
            if depth == 0:
                return token.end
    return None


def iter_block_spans(html: str, class_token: str | None, tag: str = "div") -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` offsets of every top-level balanced block matching ``class_token``.

    Only opening/closing tags named ``tag`` move the depth counter. When an
    opener never closes, scanning resumes right after it.
    """
    if not html:
        return
    tag = tag.lower()
    pos = 0
    while pos < len(html):
        opener = _find_opener(html, pos, class_token, tag)
        if opener is None:
            return
        if opener.self_closing:
            pos = opener.end
            continue
        end = _find_balanced_end(html, opener, tag)
        if end is None:
            pos = opener.end
            continue
        yield opener.start, end
        pos = end


def iter_blocks(html: str, class_token: str | None, tag: str = "div") -> Iterator[str]:
    for start, end in iter_block_spans(html, class_token, tag):
        yield html[start:end]


def extract_blocks(html: str, class_token: str | None, tag: str = "div") -> list[str]:
    """Return every top-level balanced ``<tag class="...class_token...">…</tag>`` block, in document order."""
    return list(iter_blocks(html, class_token, tag))


def extract_first_block(html: str, class_token: str | None, tag: str = "div") -> str | None:
    """Return the first balanced block matching ``class_token``, or None."""
    return next(iter_blocks(html, class_token, tag), None)


def inner_html(block: str) -> str:
    """Markup between a block's opening tag and its final closing tag."""
    opener = next((t for t in tokenize(block) if isinstance(t, StartTag)), None)
    if opener is None:
        return block
    close_at = block.lower().rfind(f"</{opener.name}")
    if close_at < opener.end:
        return block[opener.end :]
    return block[opener.end : close_at]


def child_blocks(block: str, tag: str = "div", class_token: str | None = None) -> list[str]:
    """Outermost ``tag`` blocks inside ``block`` (its own opening and closing tags excluded)."""
    return extract_blocks(inner_html(block), class_token, tag)


def remove_blocks(html: str, class_token: str | None, tag: str = "div") -> str:
    """Return ``html`` with every matching top-level block cut out."""
    pieces: list[str] = []
    pos = 0
    for start, end in iter_block_spans(html, class_token, tag):
        pieces.append(html[pos:start])
        pos = end
    pieces.append(html[pos:])
    return "".join(pieces)


def find_start_tags(html: str, tag: str, class_token: str | None = None) -> Iterator[StartTag]:
    """Yield every opening ``tag`` whose class matches, including void/self-closing ones such as ``<img>``."""
    tag = tag.lower()
    for token in tokenize(html):
        if isinstance(token, StartTag) and token.name == tag and class_matches(token, class_token):
            yield token
