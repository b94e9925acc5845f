# ABOUTME: Tests for dependency tree reconstruction from treant payloads and nested tree markup
# ABOUTME: Checks guards against deep, wide and cyclic input as well as the "no tree" result

import html
import json

import pytest

from paldex_harvest.extraction.tree import TreeLimits, parse_dependency_tree


def treant_page(payload) -> str:
    """Embed a payload the way detail pages do: entity-encoded JSON in a data-treant attribute."""
    encoded = html.escape(json.dumps(payload), quote=True)
    return f'<html><body><div class="card"><div id="tree" data-treant="{encoded}"></div></div></body></html>'


def node(slug: str | None, qty="1", children=None, image=None) -> dict:
    data = {"text": {"name": qty}, "children": children or []}
    if slug is not None:
        data["link"] = {"href": f"/en/{slug}"}
    if image is not None:
        data["image"] = image
    return data


def deeply_nested_treant_page(levels: int = 100_000) -> str:
    """A payload nested deeper than the JSON decoder can recurse."""
    text = '{"children":[' * levels + "{}" + "]}" * levels
    return f'<div id="tree" data-treant="{html.escape(text, quote=True)}"></div>'


def chain(length: int) -> dict:
    root = node(f"Item_{length - 1}")
    for index in range(length - 2, -1, -1):
        root = node(f"Item_{index}", children=[root])
    return root


WOODEN_CHEST_TREE = node(
    "Wooden_Chest",
    image="/image/T_icon_chest.webp",
    children=[
        node("Wood", qty="15", image="/image/T_icon_wood.webp"),
        node(None, qty="50", image="/image/T_icon_status_05.webp"),
        {
            "text": {"name": "3"},
            "link": {"href": "https://paldb.cc/en/Paldium_Fragment"},
            "children": [node("Stone", qty="2")],
        },
    ],
)


class TestTreantPayload:
    """data-treant JSON payloads"""

    def test_wooden_chest_tree(self):
        tree = parse_dependency_tree(treant_page(WOODEN_CHEST_TREE))

        assert tree.slug == "Wooden_Chest"
        assert tree.name == "Wooden Chest"
        assert tree.qty == 1
        assert tree.icon_url == "https://cdn.paldb.cc/image/T_icon_chest.webp"
        # The link-less "Work" node is dropped
        assert [(c.slug, c.qty) for c in tree.children] == [("Wood", 15), ("Paldium_Fragment", 3)]
        assert tree.children[0].icon_url == "https://cdn.paldb.cc/image/T_icon_wood.webp"
        assert tree.children[1].children[0].slug == "Stone"
        assert tree.children[1].children[0].name == "Stone"
        assert tree.node_count() == 4
        assert tree.depth() == 3

    def test_node_structure_wrapper(self):
        page = treant_page({"chart": {"container": "#tree"}, "nodeStructure": WOODEN_CHEST_TREE})
        assert parse_dependency_tree(page).slug == "Wooden_Chest"

    def test_root_without_link_takes_root_slug(self):
        page = treant_page(node(None, children=[node("Wood")]))
        tree = parse_dependency_tree(page, root_slug="Wooden_Chest")
        assert tree.slug == "Wooden_Chest"
        assert [c.slug for c in tree.children] == ["Wood"]

    def test_root_without_any_slug_is_no_tree(self):
        assert parse_dependency_tree(treant_page(node(None, children=[node("Wood")]))) is None

    def test_non_numeric_quantity_is_none(self):
        tree = parse_dependency_tree(treant_page(node("Wood", qty="Wood")))
        assert tree.qty is None

    def test_oversized_integer_quantity_is_none(self):
        tree = parse_dependency_tree(treant_page(node("Wood", qty=10**400)))
        assert tree.slug == "Wood"
        assert tree.qty is None

    def test_deeply_nested_payload_is_no_tree(self):
        assert parse_dependency_tree(deeply_nested_treant_page()) is None

    def test_deeply_nested_payload_falls_back_to_markup(self):
        tree = parse_dependency_tree(deeply_nested_treant_page() + NESTED_MARKUP)
        assert tree.slug == "Wooden_Chest"

    def test_leaf_only_tree_differs_from_no_tree(self):
        tree = parse_dependency_tree(treant_page(node("Wood")))
        assert tree is not None
        assert tree.children == ()

    @pytest.mark.parametrize(
        "page",
        [
            "",
            None,
            "<html><body>No tree here</body></html>",
            '<div data-treant="{not json"></div>',
            '<div data-treant=""></div>',
            '<div data-treant="[1, 2]"></div>',
        ],
    )
    def test_no_tree(self, page):
        assert parse_dependency_tree(page) is None


class TestGuards:
    """Hostile payloads are truncated, never fatal"""

    @pytest.mark.parametrize("length", [1, 2, 10, 32])
    def test_depth_within_limit_is_kept(self, length):
        assert parse_dependency_tree(treant_page(chain(length))).depth() == length

    def test_depth_is_capped(self):
        tree = parse_dependency_tree(treant_page(chain(200)))
        assert tree.depth() == 32

    def test_custom_depth_limit(self):
        tree = parse_dependency_tree(treant_page(chain(20)), limits=TreeLimits(max_depth=5))
        assert tree.depth() == 5

    def test_cyclic_payload_terminates(self):
        # A -> B -> A -> B ... as deep as the JSON allows
        payload = node("Slot_B")
        for index in range(150):
            payload = node("Slot_A" if index % 2 == 0 else "Slot_B", children=[payload])
        tree = parse_dependency_tree(treant_page(payload))

        assert tree.slug == "Slot_B"
        assert [c.slug for c in tree.children] == ["Slot_A"]
        assert tree.children[0].children == ()
        assert tree.depth() == 2

    def test_repeated_slug_in_sibling_branches_is_allowed(self):
        page = treant_page(node("Root", children=[node("A", children=[node("Wood")]), node("B", children=[node("Wood")])]))
        tree = parse_dependency_tree(page)
        assert [c.children[0].slug for c in tree.children] == ["Wood", "Wood"]

    def test_fan_out_is_capped(self):
        page = treant_page(node("Root", children=[node(f"Child_{i}") for i in range(100)]))
        tree = parse_dependency_tree(page)
        assert len(tree.children) == 64
        assert tree.children[-1].slug == "Child_63"

    def test_node_budget(self):
        page = treant_page(node("Root", children=[node(f"Child_{i}") for i in range(100)]))
        tree = parse_dependency_tree(page, limits=TreeLimits(max_nodes=5))
        assert tree.node_count() == 5


NESTED_MARKUP = """
<div class="tree">
  <div class="tree-node">
    <a class="itemname" href="/en/Wooden_Chest"><img src="/image/chest.webp">Wooden Chest</a>
    <div class="tree-children">
      <div class="tree-node">
        <a class="itemname" href="/en/Wood">Wood</a><small class="itemQuantity">x15</small>
      </div>
      <div class="tree-node">
        <a class="itemname" href="/en/Stone">Stone</a><small class="itemQuantity">x3</small>
        <div class="tree-children">
          <div class="tree-node"><a class="itemname" href="/en/Wooden_Chest">Wooden Chest</a></div>
          <div class="tree-node"><a class="itemname" href="/en/Pebble">Pebble</a></div>
        </div>
      </div>
    </div>
  </div>
</div>
"""


class TestNestedMarkup:
    """tree-node / tree-children markup"""

    def test_nested_markup_tree(self):
        tree = parse_dependency_tree(NESTED_MARKUP)

        assert tree.slug == "Wooden_Chest"
        assert tree.qty is None
        assert tree.icon_url == "https://cdn.paldb.cc/image/chest.webp"
        assert [(c.slug, c.qty) for c in tree.children] == [("Wood", 15), ("Stone", 3)]
        # Wooden_Chest under Stone would close a cycle
        assert [c.slug for c in tree.children[1].children] == ["Pebble"]

    def test_treant_payload_wins_over_markup(self):
        page = treant_page(node("Wood")) + NESTED_MARKUP
        assert parse_dependency_tree(page).slug == "Wood"

    def test_markup_depth_cap(self):
        inner = ""
        for index in range(10, 0, -1):
            children = f'<div class="tree-children">{inner}</div>' if inner else ""
            inner = f'<div class="tree-node"><a class="itemname" href="/en/Level_{index}">Level {index}</a>{children}</div>'
        tree = parse_dependency_tree(inner, limits=TreeLimits(max_depth=4))
        assert tree.depth() == 4
