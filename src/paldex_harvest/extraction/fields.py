# ABOUTME: Field parsers shared by card, recipe and tree markup: item links, icons, quantities, recipe rows
# ABOUTME: Each field tries an ordered list of patterns; misses resolve to None instead of raising

from dataclasses import dataclass

from paldex_harvest.extraction.blocks import child_blocks, extract_blocks, extract_first_block, find_start_tags
from paldex_harvest.extraction.text import clean_text, decode_entities, dedupe_by, first_match, html_to_text, parse_qty
from paldex_harvest.extraction.urls import SiteUrls
from paldex_harvest.models import RecipeIngredient

ITEM_LINK_TOKEN = "itemname"
IMG_SOURCE_ATTRS = ("src", "data-src", "data-lazy-src", "data-original")

_QTY_PATTERNS = [
    r"""<small\b[^>]*class=["'][^"']*\bitemQuantity\b[^"']*["'][^>]*>\s*([^<]+?)\s*</small>""",
]


@dataclass(frozen=True, slots=True)
class ItemLink:
    """The slug/name/icon triple read from one ``<a class="itemname">`` anchor."""

    slug: str
    name: str
    icon_url: str | None


def _img_source(tag) -> str | None:
    for attr in IMG_SOURCE_ATTRS:
        value = tag.get(attr)
        if value and value.strip():
            return value.strip()
    return None


def extract_icon_url(fragment: str | None, urls: SiteUrls, size_token: str | None = "size128") -> str | None:
    """Pick the icon of a fragment: the ``<img>`` carrying ``size_token`` first, then the first ``<img>`` with a source."""
    if not fragment:
        return None
    if size_token:
        for tag in find_start_tags(fragment, "img", size_token):
            source = _img_source(tag)
            if source:
                return urls.absolute(source)
    for tag in find_start_tags(fragment, "img"):
        source = _img_source(tag)
        if source:
            return urls.absolute(source)
    return None


def parse_item_link(fragment: str | None, urls: SiteUrls, *, require_class: bool = True) -> ItemLink | None:
    """Read the first item anchor of a fragment.

    The anchor is ``<a class="itemname" href="...">`` (either quote style);
    with ``require_class=False`` any ``<a href>`` is accepted. Returns None
    when no slug or no name can be resolved.
    """
    if not fragment:
        return None

    anchors = list(find_start_tags(fragment, "a", ITEM_LINK_TOKEN if require_class else None))
    for anchor in anchors:
        slug = urls.normalize_slug(anchor.get("href"))
        if not slug:
            continue

        anchor_html = extract_first_block(fragment[anchor.start :], None, "a")
        name = html_to_text(anchor_html) if anchor_html else ""
        if not name:
            name = clean_text(decode_entities(anchor.get("title") or anchor.get("data-name") or ""))
        if not name:
            continue

        icon_url = extract_icon_url(anchor_html, urls) if anchor_html else None
        return ItemLink(slug=slug, name=name, icon_url=icon_url)
    return None


def parse_item_links(fragment: str | None, urls: SiteUrls) -> list[ItemLink]:
    """Every item anchor of a fragment, deduplicated by slug."""
    if not fragment:
        return []
    links = []
    for anchor in find_start_tags(fragment, "a", ITEM_LINK_TOKEN):
        link = parse_item_link(fragment[anchor.start :], urls)
        if link is not None:
            links.append(link)
    return dedupe_by(links, lambda link: link.slug)


def extract_qty_text(fragment: str | None) -> str | None:
    """Raw text of the quantity badge (``<small class="itemQuantity">x3</small>``), or None."""
    raw = first_match(fragment, _QTY_PATTERNS)
    if raw is None:
        return None
    return clean_text(decode_entities(raw)) or None


def extract_qty(fragment: str | None) -> int | None:
    """Quantity badge of a fragment as a number, or None."""
    raw = extract_qty_text(fragment)
    return parse_qty(raw) if raw is not None else None


def _ingredient_units(fragment: str) -> list[str]:
    # Table cells wrap each ingredient in its own <span>; some list anchors back to back instead
    spans = [span for span in extract_blocks(fragment, None, "span") if next(find_start_tags(span, "a"), None)]
    if spans and all(len(list(find_start_tags(span, "a", ITEM_LINK_TOKEN))) <= 1 for span in spans):
        return spans
    starts = [anchor.start for anchor in find_start_tags(fragment, "a", ITEM_LINK_TOKEN)]
    return [fragment[start:end] for start, end in zip(starts, [*starts[1:], len(fragment)])]


def parse_ingredients(fragment: str | None, urls: SiteUrls) -> list[RecipeIngredient]:
    """Ingredients packed into one table cell, each an item link with an optional quantity badge.

    Units without an item link, such as the "Work" icon, are skipped.
    """
    ingredients = []
    for unit in _ingredient_units(fragment or ""):
        link = parse_item_link(unit, urls) or parse_item_link(unit, urls, require_class=False)
        if link is None:
            continue
        ingredients.append(
            RecipeIngredient(slug=link.slug, name=link.name, icon_url=link.icon_url, qty=extract_qty(unit))
        )
    return dedupe_by(ingredients, lambda ingredient: ingredient.slug)


def _row_qty(row: str) -> int | None:
    qty = extract_qty(row)
    if qty is not None:
        return qty
    # Card recipes print the quantity in the last plain <div> of the row
    for cell in reversed(child_blocks(row, "div")):
        if "<a" in cell.lower():
            continue
        qty = parse_qty(html_to_text(cell))
        if qty is not None:
            return qty
    return None


def parse_recipe(card: str | None, urls: SiteUrls, recipe_token: str = "recipes",
                 row_token: str = "justify-content-between") -> list[RecipeIngredient]:
    """Ingredients listed in a card's (often hidden) recipes block.

    Rows without an item link, such as the "Work" pseudo-ingredient, are
    skipped. Ingredients are deduplicated by slug.
    """
    recipes = extract_first_block(card or "", recipe_token)
    if not recipes:
        return []

    ingredients = []
    for row in extract_blocks(recipes, row_token):
        link = parse_item_link(row, urls) or parse_item_link(row, urls, require_class=False)
        if link is None:
            continue
        ingredients.append(
            RecipeIngredient(slug=link.slug, name=link.name, icon_url=link.icon_url, qty=_row_qty(row))
        )
    return dedupe_by(ingredients, lambda ingredient: ingredient.slug)
