# ABOUTME: Generic listing parser turning category list pages into IndexItem records
# ABOUTME: One engine for every category; the CategorySchema says whether entities sit in cards or table rows

from paldex_harvest.extraction.blocks import child_blocks, extract_blocks, extract_first_block, find_start_tags
from paldex_harvest.extraction.fields import extract_icon_url, parse_item_link, parse_recipe
from paldex_harvest.extraction.schema import PANE_LABEL_KEY, CategorySchema, TablePane
from paldex_harvest.extraction.tables import extract_table, table_rows
from paldex_harvest.extraction.text import dedupe_by, html_to_text, parse_number, text_or_none
from paldex_harvest.extraction.urls import SiteUrls
from paldex_harvest.models import IndexItem
from paldex_harvest.utils.logging import get_logger

logger = get_logger(__name__)

TAB_PANE_TOKEN = "tab-pane"


def _category_text(block: str, token: str) -> str | None:
    for tag in find_start_tags(block, "span", token):
        text = text_or_none(extract_first_block(block[tag.start :], None, "span"))
        if text:
            return text
    return None


def _description(block: str, token: str) -> str | None:
    body = extract_first_block(block, token)
    if not body:
        return None
    first_div = next(iter(child_blocks(body, "div")), None)
    return text_or_none(first_div if first_div is not None else body)


def parse_entity(block: str, schema: CategorySchema, urls: SiteUrls | None = None) -> IndexItem | None:
    """Parse one entity card.

    Args:
        block: Markup of a single ``card itemPopup`` block
        schema: Category schema naming the extra fields to read
        urls: Site URL builder used for slug and icon normalization

    Returns:
        The parsed item, or None when the card has no usable slug or name
    """
    urls = urls or SiteUrls()

    # The recipe block holds its own item links; read the card's link without it
    recipes = extract_first_block(block, schema.recipe_token)
    head = block.replace(recipes, "", 1) if recipes else block

    link = parse_item_link(head, urls)
    if link is None:
        return None

    stats = {spec.key: spec.extract(head) for spec in schema.number_fields}
    labels = {spec.key: spec.extract(head) for spec in schema.text_fields}

    return IndexItem(
        slug=link.slug,
        name=link.name,
        icon_url=extract_icon_url(head, urls, schema.icon_size_token) or link.icon_url,
        category=_category_text(head, schema.category_token),
        stats=stats,
        labels=labels,
        description=_description(head, schema.description_token),
        recipe=tuple(parse_recipe(block, urls, schema.recipe_token, schema.recipe_row_token)),
    )


def parse_table_row(cells: list[str], pane: TablePane, schema: CategorySchema,
                    urls: SiteUrls | None = None) -> IndexItem | None:
    """Parse one listing table row; cell 0 carries the entity link, the pane's columns the numbers."""
    urls = urls or SiteUrls()
    if not cells:
        return None
    link = parse_item_link(cells[0], urls) or parse_item_link(cells[0], urls, require_class=False)
    if link is None:
        return None

    stats = {
        column.key: parse_number(html_to_text(cells[column.index]), integer=column.integer)
        if column.index < len(cells)
        else None
        for column in pane.columns
    }
    return IndexItem(
        slug=link.slug,
        name=link.name,
        icon_url=link.icon_url or extract_icon_url(cells[0], urls, schema.icon_size_token),
        category=schema.label,
        stats=stats,
        labels={PANE_LABEL_KEY: pane.label},
    )


def _tab_pane(html: str, pane_id: str) -> str | None:
    panes = list(find_start_tags(html, "div", TAB_PANE_TOKEN))
    for index, tag in enumerate(panes):
        if tag.get("id") != pane_id:
            continue
        block = extract_first_block(html[tag.start :], None)
        if block is not None:
            return block
        # Unbalanced pane: it ends where the next pane begins
        end = panes[index + 1].start if index + 1 < len(panes) else len(html)
        return html[tag.start : end]
    return None


def _parse_tables(html: str, schema: CategorySchema, urls: SiteUrls) -> tuple[int, list[IndexItem]]:
    seen = 0
    items = []
    for pane in schema.panes:
        pane_html = _tab_pane(html, pane.pane_id)
        if pane_html is None:
            logger.debug("Listing pane missing", category=schema.key, pane=pane.pane_id)
            continue
        for cells in table_rows(extract_table(pane_html, None)):
            seen += 1
            item = parse_table_row(cells, pane, schema, urls)
            if item is not None:
                items.append(item)
    return seen, items


def _parse_cards(html: str, schema: CategorySchema, urls: SiteUrls) -> tuple[int, list[IndexItem]]:
    cards = extract_blocks(html, schema.card_token)
    items = []
    for card in cards:
        item = parse_entity(card, schema, urls)
        if item is not None:
            items.append(item)
    return len(cards), items


def parse_listing(html: str, schema: CategorySchema, urls: SiteUrls | None = None) -> list[IndexItem]:
    """Parse every entity of a category list page.

    Entities without slug or name are skipped; duplicate slugs keep the first occurrence.
    """
    urls = urls or SiteUrls()
    if schema.layout == "tables":
        seen, items = _parse_tables(html, schema, urls)
    else:
        seen, items = _parse_cards(html, schema, urls)

    unique = dedupe_by(items, lambda item: item.slug)
    logger.debug(
        "Parsed category listing",
        category=schema.key,
        layout=schema.layout,
        entities=seen,
        items=len(unique),
        dropped=seen - len(items),
        duplicates=len(items) - len(unique),
    )
    return unique
