# ABOUTME: Titled cards of detail pages: key/value stat cards plus recipe, drop, treasure and merchant tables
# ABOUTME: Cards are found by their h5 card-title text; every section degrades to an empty result

import re

from paldex_harvest.extraction.blocks import child_blocks, extract_blocks, extract_first_block
from paldex_harvest.extraction.fields import (
    ItemLink,
    extract_qty,
    extract_qty_text,
    parse_ingredients,
    parse_item_link,
    parse_item_links,
)
from paldex_harvest.extraction.tables import extract_table, table_rows
from paldex_harvest.extraction.text import clean_text, html_to_text, parse_number, text_or_none
from paldex_harvest.extraction.urls import SiteUrls
from paldex_harvest.models import (
    DetailSections,
    DroppedByRow,
    ItemRef,
    MerchantRow,
    RecipeIngredient,
    RecipeRow,
    StatRow,
    TreasureBoxRow,
)

CARD_TOKEN = "card mt-3"
TITLE_TOKEN = "card-title"
ROW_TOKEN = "d-flex justify-content-between"
PRODUCED_AT_TOKEN = "row row-cols-1 row-cols-lg-2 g-2"
STAT_CARD_TITLES = ("stats", "others")

_PLAIN_NUMBER_RE = re.compile(r"[-+]?(?:\d[\d,]*(?:\.\d+)?|\.\d+)")


def card_title(card: str) -> str | None:
    title = extract_first_block(card, TITLE_TOKEN, "h5")
    text = html_to_text(title) if title else ""
    return text or None


def extract_card_by_title(detail_html: str | None, title: str) -> str | None:
    """First ``card mt-3`` block whose title contains ``title`` (case-insensitive)."""
    if not detail_html:
        return None
    needle = title.strip().lower()
    for card in extract_blocks(detail_html, CARD_TOKEN):
        heading = card_title(card)
        if heading and needle in heading.lower():
            return card
    return None


def plain_number(value_text: str | None) -> float | None:
    """Numeric reading of a value cell, only when the whole cell is a number (``"1,200"`` yes, ``"10%"`` no)."""
    if not value_text or not _PLAIN_NUMBER_RE.fullmatch(value_text.strip()):
        return None
    number = parse_number(value_text)
    return float(number) if number is not None else None


def parse_key_value_rows(card: str | None, urls: SiteUrls | None = None) -> list[StatRow]:
    """Key/value rows of one card. Rows without a key are skipped."""
    if not card:
        return []
    urls = urls or SiteUrls()

    rows = []
    for row in extract_blocks(card, ROW_TOKEN):
        cells = child_blocks(row, "div")
        if len(cells) < 2:
            continue
        key_cell, value_cell = cells[0], cells[-1]

        link = parse_item_link(key_cell, urls)
        key = link.name if link else html_to_text(key_cell)
        if not key:
            continue

        value_text = html_to_text(value_cell) or None
        rows.append(StatRow(key=key, value_text=value_text, value=plain_number(value_text)))
    return rows


def parse_stat_cards(detail_html: str | None, urls: SiteUrls | None = None,
                     titles: tuple[str, ...] = STAT_CARD_TITLES) -> list[StatRow]:
    """Rows of every titled stat card on a detail page, in title order."""
    rows: list[StatRow] = []
    for title in titles:
        rows.extend(parse_key_value_rows(extract_card_by_title(detail_html, title), urls))
    return rows


# tables


def _item_ref(link: ItemLink | None) -> ItemRef | None:
    return ItemRef(slug=link.slug, name=link.name, icon_url=link.icon_url) if link else None


def _first_ref(cell: str, urls: SiteUrls) -> ItemRef | None:
    return _item_ref(parse_item_link(cell, urls) or parse_item_link(cell, urls, require_class=False))


def _loose_text(cell: str) -> str | None:
    """Cell text with underscores as spaces and spaced-out en dashes (``Lv_10–20`` → ``Lv 10 – 20``)."""
    text = html_to_text(cell).replace("_", " ").replace("–", " – ")
    return clean_text(text) or None


def parse_recipe_table(table: str | None, urls: SiteUrls | None = None) -> list[RecipeRow]:
    """Rows of a materials / product / schematic table.

    The "Work" pseudo-ingredient has no item link and is left out; a row
    left with no materials, no product and no schematic is dropped.
    """
    urls = urls or SiteUrls()
    rows = []
    for cells in table_rows(table):
        if len(cells) < 2:
            continue
        materials = parse_ingredients(cells[0], urls)
        link = parse_item_link(cells[1], urls) or parse_item_link(cells[1], urls, require_class=False)
        product = (
            RecipeIngredient(slug=link.slug, name=link.name, icon_url=link.icon_url, qty=extract_qty(cells[1]))
            if link
            else None
        )
        schematic_text = text_or_none(cells[2]) if len(cells) > 2 else None
        if not materials and product is None and not schematic_text:
            continue
        rows.append(RecipeRow(materials=tuple(materials), product=product, schematic_text=schematic_text))
    return rows


def parse_dropped_by_table(table: str | None, urls: SiteUrls | None = None) -> list[DroppedByRow]:
    """Pal / quantity / probability rows."""
    urls = urls or SiteUrls()
    rows = []
    for cells in table_rows(table):
        if len(cells) < 3:
            continue
        row = DroppedByRow(
            pal=_first_ref(cells[0], urls), qty_text=text_or_none(cells[1]), probability_text=text_or_none(cells[2])
        )
        if row != DroppedByRow():
            rows.append(row)
    return rows


def parse_treasure_box_table(table: str | None, urls: SiteUrls | None = None) -> list[TreasureBoxRow]:
    """Item (with quantity badge) / source rows."""
    urls = urls or SiteUrls()
    rows = []
    for cells in table_rows(table):
        if len(cells) < 2:
            continue
        qty_text = extract_qty_text(cells[0])
        row = TreasureBoxRow(
            item=_first_ref(cells[0], urls),
            qty_text=_loose_text(qty_text) if qty_text else None,
            source_text=_loose_text(cells[1]),
        )
        if row != TreasureBoxRow():
            rows.append(row)
    return rows


def parse_merchant_table(table: str | None, urls: SiteUrls | None = None) -> list[MerchantRow]:
    """Item / merchant rows."""
    urls = urls or SiteUrls()
    rows = []
    for cells in table_rows(table):
        if len(cells) < 2:
            continue
        row = MerchantRow(item=_first_ref(cells[0], urls), source_text=_loose_text(cells[1]))
        if row != MerchantRow():
            rows.append(row)
    return rows


def _card_table(detail_html: str | None, title: str) -> str | None:
    return extract_table(extract_card_by_title(detail_html, title))


def parse_detail_sections(detail_html: str | None, urls: SiteUrls | None = None) -> DetailSections:
    """Every titled card of a detail page apart from the dependency tree."""
    urls = urls or SiteUrls()
    production_card = extract_card_by_title(detail_html, "production")
    produced_at = extract_first_block(production_card, PRODUCED_AT_TOKEN) if production_card else None

    return DetailSections(
        stats_rows=tuple(parse_stat_cards(detail_html, urls)),
        produced_at=tuple(_item_ref(link) for link in parse_item_links(produced_at, urls)),
        production=tuple(parse_recipe_table(extract_table(production_card), urls)),
        crafting_materials=tuple(parse_recipe_table(_card_table(detail_html, "crafting materials"), urls)),
        dropped_by=tuple(parse_dropped_by_table(_card_table(detail_html, "dropped by"), urls)),
        treasure_box=tuple(parse_treasure_box_table(_card_table(detail_html, "treasure box"), urls)),
        wandering_merchant=tuple(parse_merchant_table(_card_table(detail_html, "wandering merchant"), urls)),
    )
