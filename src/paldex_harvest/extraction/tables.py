# ABOUTME: Tolerant table slicing for detail and mount pages: rows and cells without requiring close tags
# ABOUTME: A row runs to the next <tr> or the end of its body; a cell runs to the next <td> or the end of its row

from paldex_harvest.extraction.blocks import extract_first_block, find_start_tags
from paldex_harvest.extraction.tokenizer import EndTag, StartTag, tokenize


def _loose_sections(html: str, tag: str, stops: frozenset[str]) -> list[str]:
    """Inner markup of every ``tag`` element, each ending at the next ``tag`` opener or a ``stops`` close tag."""
    sections = []
    open_at: int | None = None
    for token in tokenize(html):
        if isinstance(token, StartTag) and token.name == tag:
            if open_at is not None:
                sections.append(html[open_at : token.start])
            open_at = token.end
        elif isinstance(token, EndTag) and token.name in stops and open_at is not None:
            sections.append(html[open_at : token.start])
            open_at = None
    if open_at is not None:
        sections.append(html[open_at:])
    return sections


def table_body(table: str) -> str:
    """Markup after the table's ``<tbody>`` opener, or the whole table when it has none."""
    tbody = next(iter(find_start_tags(table, "tbody")), None)
    return table[tbody.end :] if tbody is not None else table


def table_rows(table: str | None) -> list[list[str]]:
    """Cell markup of each body row. Header rows (``<th>`` only) yield no cells and are left out."""
    if not table:
        return []
    rows = []
    for row in _loose_sections(table_body(table), "tr", frozenset({"tbody", "table"})):
        cells = _loose_sections(row, "td", frozenset({"tr"}))
        if cells:
            rows.append(cells)
    return rows


def extract_table(fragment: str | None, class_token: str | None = "table mb-0") -> str | None:
    """First ``<table>`` carrying ``class_token``, falling back to the first table of any class."""
    if not fragment:
        return None
    table = extract_first_block(fragment, class_token, "table") if class_token else None
    return table or extract_first_block(fragment, None, "table")
