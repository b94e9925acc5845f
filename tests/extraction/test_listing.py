# ABOUTME: Tests for schema-driven list page parsing into IndexItem records
# ABOUTME: Uses card snippets shaped like paldb.cc category pages (itemPopup cards, hidden recipes)

import pytest

from paldex_harvest.extraction.base import UnknownCategoryError
from paldex_harvest.extraction.fields import extract_icon_url, parse_item_link, parse_recipe
from paldex_harvest.extraction.listing import parse_entity, parse_listing
from paldex_harvest.extraction.schema import CATEGORIES, get_schema
from paldex_harvest.extraction.urls import SiteUrls

WOODEN_CHEST_CARD = """
<div class="card itemPopup">
  <div class="d-flex">
    <a class="itemname" href="/en/Wooden_Chest">
      <img class="rounded size128" src="/image/Pal/Texture/T_icon_chest.webp">Wooden&nbsp;Chest
    </a>
  </div>
  <div class="d-flex align-items-center">
    <span class="me-auto">Storage</span>
    <span>Technology</span> <span class="border p-1">2</span>
  </div>
  <div><span>Slots</span><span class="border p-1">10</span></div>
  <div class="card-body py-2"><div>A simple chest for storing items.</div><div>ignored</div></div>
  <div class="recipes" style="display:none">
    <div class="d-flex justify-content-between">
      <div><a class="itemname" href="/en/Wood"><img src="/image/T_icon_wood.webp">Wood</a></div>
      <div>15</div>
    </div>
    <div class="d-flex justify-content-between">
      <div><img src="/image/T_icon_status_05.webp">Work</div>
      <div>50</div>
    </div>
    <div class="d-flex justify-content-between">
      <div><a class="itemname" href="/en/Stone">Stone</a></div>
      <div><small class="itemQuantity">x1,000</small></div>
    </div>
  </div>
</div>
"""

METAL_CHEST_CARD = """
<div class="card itemPopup">
  <a class='itemname' href='https://paldb.cc/en/Metal_Chest'>Metal Chest</a>
  <img data-src="/cache/metal.webp">
  <div>Technology: 12</div>
</div>
"""

NAMELESS_CARD = '<div class="card itemPopup"><a class="itemname" href="/en/Ghost"></a></div>'
LINKLESS_CARD = '<div class="card itemPopup"><span class="me-auto">Storage</span>No link</div>'


@pytest.fixture
def urls():
    return SiteUrls()


@pytest.fixture
def storage():
    return get_schema("storage")


class TestParseEntity:
    """One card → one IndexItem"""

    def test_wooden_chest_card(self, storage, urls):
        item = parse_entity(WOODEN_CHEST_CARD, storage, urls)

        assert item is not None
        assert item.slug == "Wooden_Chest"
        assert item.name == "Wooden Chest"
        assert item.icon_url == "https://cdn.paldb.cc/image/Pal/Texture/T_icon_chest.webp"
        assert item.category == "Storage"
        assert item.stats == {"technology_level": 2, "slots": 10}
        assert item.description == "A simple chest for storing items."

    def test_recipe_rows(self, storage, urls):
        item = parse_entity(WOODEN_CHEST_CARD, storage, urls)

        assert [(i.slug, i.name, i.qty) for i in item.recipe] == [("Wood", "Wood", 15), ("Stone", "Stone", 1000)]
        assert item.recipe[0].icon_url == "https://cdn.paldb.cc/image/T_icon_wood.webp"

    def test_single_quotes_lazy_icon_and_text_fallback(self, storage, urls):
        item = parse_entity(METAL_CHEST_CARD, storage, urls)

        assert item.slug == "Metal_Chest"
        assert item.icon_url == "https://cdn.paldb.cc/cache/metal.webp"
        assert item.stat("technology_level") == 12
        assert item.stat("slots") is None
        assert item.category is None
        assert item.description is None
        assert item.recipe == ()

    @pytest.mark.parametrize("card", [NAMELESS_CARD, LINKLESS_CARD])
    def test_cards_without_slug_or_name_are_dropped(self, storage, urls, card):
        assert parse_entity(card, storage, urls) is None

    def test_rarity_label(self, urls):
        card = """
        <div class="card itemPopup">
          <a class="itemname" href="/en/Pal_Metal_Ingot">Pal Metal Ingot</a>
          <span class="hover_text_rarity2 small">Uncommon</span>
        </div>
        """
        item = parse_entity(card, get_schema("material"), urls)
        assert item.labels == {"rarity": "Uncommon"}

    def test_armor_stats_read_from_mini_stats_column(self, urls):
        card = """
        <div class="card itemPopup">
          <a class="itemname" href="/en/Cloth_Outfit">Cloth Outfit</a>
          <div class="d-flex flex-column small">
            <div><span>Defense</span> <span class="border p-1">12</span></div>
            <div><span>Health</span> <span class="border p-1">1,200</span></div>
          </div>
        </div>
        """
        item = parse_entity(card, get_schema("armor"), urls)
        assert item.stat("defense") == 12
        assert item.stat("health") == 1200
        assert item.stat("shield") is None


class TestParseListing:
    """Whole list pages"""

    def test_listing_drops_bad_cards_and_duplicates(self, storage, urls):
        duplicate = WOODEN_CHEST_CARD.replace("Wooden&nbsp;Chest", "Second Copy")
        html = f"<main>{WOODEN_CHEST_CARD}{NAMELESS_CARD}{METAL_CHEST_CARD}{duplicate}{LINKLESS_CARD}</main>"

        items = parse_listing(html, storage, urls)

        assert [item.slug for item in items] == ["Wooden_Chest", "Metal_Chest"]
        # First occurrence wins
        assert items[0].name == "Wooden Chest"

    def test_empty_page(self, storage):
        assert parse_listing("<html><body>No cards</body></html>", storage) == []

    def test_items_are_immutable(self, storage, urls):
        (item,) = parse_listing(WOODEN_CHEST_CARD, storage, urls)
        with pytest.raises(Exception):
            item.name = "Changed"


class TestFieldParsers:
    """Shared link/icon/recipe helpers"""

    def test_item_link_entity_decoding(self, urls):
        link = parse_item_link('<a class="itemname" href="/en/Fish_&amp;_Chips">Fish &amp; Chips</a>', urls)
        assert link.slug == "Fish_&_Chips"
        assert link.name == "Fish & Chips"

    def test_item_link_title_fallback(self, urls):
        link = parse_item_link('<a class="itemname" href="/en/Wood" title="Wood"><img src="/img/w.png"></a>', urls)
        assert link.name == "Wood"
        assert link.icon_url == "https://cdn.paldb.cc/img/w.png"

    def test_icon_prefers_size_token(self, urls):
        html = '<img src="/image/small.webp"><img class="size128" data-lazy-src="/image/big.webp" src=" ">'
        assert extract_icon_url(html, urls) == "https://cdn.paldb.cc/image/big.webp"

    def test_recipe_missing_block(self, urls):
        assert parse_recipe("<div>no recipes</div>", urls) == []

    def test_recipe_dedupes_by_slug(self, urls):
        row = '<div class="d-flex justify-content-between"><div><a class="itemname" href="/en/Wood">Wood</a></div><div>{}</div></div>'
        card = f'<div class="recipes">{row.format(2)}{row.format(9)}</div>'
        ingredients = parse_recipe(card, urls)
        assert [(i.slug, i.qty) for i in ingredients] == [("Wood", 2)]


class TestSchemas:
    def test_every_category_has_technology_field(self):
        for schema in CATEGORIES.values():
            assert "technology_level" in schema.field_keys

    @pytest.mark.parametrize("key", ["storage", "STORAGE", "Key_Items", " armor "])
    def test_lookup(self, key):
        assert get_schema(key).key == key.strip().lower()

    def test_unknown_category(self):
        with pytest.raises(UnknownCategoryError) as exc_info:
            get_schema("pals")
        assert exc_info.value.category == "pals"
        assert isinstance(exc_info.value, KeyError)


MOUNTS_PAGE = """
<ul class="nav nav-tabs"><li><a href="#GroundMounts">Ground</a></li></ul>
<div class="tab-content">
  <div class="tab-pane fade show active" id="GroundMounts">
    <table class="table table-hover">
      <thead><tr><th>Pal</th><th>Run</th><th>Sprint</th><th>Tech</th><th>Gravity</th><th>Jump</th><th>Stamina</th></tr></thead>
      <tbody>
        <tr><td><a class="itemname" href="/en/Direhowl"><img src="/image/direhowl.webp">Direhowl</a></td>
            <td>800</td><td>1,100</td><td>9</td><td>1.0</td><td>1,100</td><td>100</td></tr>
        <tr><td><a class="itemname" href="/en/Melpaca">Melpaca</a></td>
            <td>600</td><td>900</td><td>12</td><td>1.0</td><td>900</td><td>150</td></tr>
        <tr><td>No pal here</td><td>1</td></tr>
      </tbody>
    </table>
  </div>
  <div class="tab-pane fade" id="FlyingMounts">
    <table class="table table-hover">
      <tbody>
        <tr><td><a class="itemname" href="/en/Nitewing">Nitewing</a><td>700<td>1,000<td>15<td>0.5<td>800<td>120
        <tr><td><a class="itemname" href="/en/Direhowl">Direhowl again</a><td>1<td>1<td>1<td>1<td>1<td>1
      </tbody>
    </table>
  </div>
  <div class="tab-pane fade" id="WaterMounts">
    <table class="table">
      <tr><td><a class="itemname" href="/en/Surfent">Surfent</a></td><td>900</td><td>1,300</td><td>19</td></tr>
    </table>
"""


@pytest.fixture
def mounts():
    return get_schema("mounts")


class TestMountTables:
    """Table-layout listing split over ground, flying and water tab panes"""

    def test_rows_of_every_pane(self, mounts, urls):
        items = parse_listing(MOUNTS_PAGE, mounts, urls)

        assert [item.slug for item in items] == ["Direhowl", "Melpaca", "Nitewing", "Surfent"]
        assert [item.labels["kind"] for item in items] == ["ground", "ground", "flying", "water"]
        assert {item.category for item in items} == {"Mounts"}

    def test_ground_columns(self, mounts, urls):
        direhowl = parse_listing(MOUNTS_PAGE, mounts, urls)[0]

        assert direhowl.name == "Direhowl"
        assert direhowl.icon_url == "https://cdn.paldb.cc/image/direhowl.webp"
        assert direhowl.stats == {
            "run_speed": 800,
            "ride_sprint_speed": 1100,
            "technology_level": 9,
            "gravity_scale": 1.0,
            "jump_z_velocity": 1100,
            "stamina": 100,
        }
        assert isinstance(direhowl.stat("technology_level"), int)

    def test_unclosed_cells_are_still_read(self, mounts, urls):
        nitewing = next(item for item in parse_listing(MOUNTS_PAGE, mounts, urls) if item.slug == "Nitewing")
        assert nitewing.stat("run_speed") == 700
        assert nitewing.stat("gravity_scale") == 0.5
        assert nitewing.stat("stamina") == 120

    def test_water_pane_without_tbody_or_close_tag(self, mounts, urls):
        surfent = parse_listing(MOUNTS_PAGE, mounts, urls)[-1]

        assert surfent.stat("swim_speed") == 900
        assert surfent.stat("swim_dash_speed") == 1300
        assert surfent.stat("technology_level") == 19
        # Missing trailing cell
        assert surfent.stat("stamina") is None

    def test_duplicate_slug_keeps_first_pane(self, mounts, urls):
        items = parse_listing(MOUNTS_PAGE, mounts, urls)
        direhowl = [item for item in items if item.slug == "Direhowl"]
        assert len(direhowl) == 1
        assert direhowl[0].labels["kind"] == "ground"

    def test_missing_panes(self, mounts, urls):
        assert parse_listing('<div class="tab-pane" id="Other"><table></table></div>', mounts, urls) == []

    def test_field_keys_include_pane_kind(self, mounts):
        assert mounts.field_keys[-1] == "kind"
        assert {"run_speed", "swim_speed", "technology_level"} <= set(mounts.field_keys)
