# ABOUTME: Typed records produced by the extraction engine
# ABOUTME: Immutable Pydantic models for list items, recipe ingredients, dependency trees and detail records

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

Number = int | float


class RecipeIngredient(BaseModel):
    """One ingredient line of a recipe, as listed on a card."""

    model_config = ConfigDict(frozen=True)

    slug: str = Field(..., min_length=1, description="Stable identifier of the ingredient entity")
    name: str = Field(..., min_length=1, description="Display name of the ingredient")
    icon_url: str | None = Field(None, description="Absolute URL of the ingredient icon")
    qty: int | None = Field(None, ge=0, description="Required quantity, None when the page shows none")


class TreeNode(BaseModel):
    """A node of a crafting/dependency tree. Children are owned by their parent; there is no back-reference."""

    model_config = ConfigDict(frozen=True)

    slug: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    icon_url: str | None = None
    qty: int | None = Field(None, ge=0)
    children: tuple["TreeNode", ...] = ()

    def depth(self) -> int:
        """Number of levels in the subtree rooted here (a leaf has depth 1)."""
        deepest = 0
        stack: list[tuple[TreeNode, int]] = [(self, 1)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            stack.extend((child, level + 1) for child in node.children)
        return deepest

    def node_count(self) -> int:
        """Total number of nodes in the subtree rooted here."""
        count = 0
        stack: list[TreeNode] = [self]
        while stack:
            node = stack.pop()
            count += 1
            stack.extend(node.children)
        return count

    def iter_slugs(self):
        """Yield every slug in the subtree, depth first, parent before children."""
        stack: list[TreeNode] = [self]
        while stack:
            node = stack.pop()
            yield node.slug
            stack.extend(reversed(node.children))


class StatRow(BaseModel):
    """A key/value row from a detail page card such as "Stats" or "Others"."""

    model_config = ConfigDict(frozen=True)

    key: str
    value_text: str | None = None
    value: float | None = Field(None, description="Numeric reading of value_text when it is a plain number")


class ItemRef(BaseModel):
    """A link to another entity, as found in detail page tables."""

    model_config = ConfigDict(frozen=True)

    slug: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    icon_url: str | None = None


class RecipeRow(BaseModel):
    """One row of a "Production" or "Crafting Materials" table."""

    model_config = ConfigDict(frozen=True)

    materials: tuple[RecipeIngredient, ...] = ()
    product: RecipeIngredient | None = None
    schematic_text: str | None = Field(None, description="Schematic required for the recipe, as printed")


class DroppedByRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    pal: ItemRef | None = None
    qty_text: str | None = Field(None, description="Drop amount as printed, e.g. '1-2'")
    probability_text: str | None = None


class TreasureBoxRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    item: ItemRef | None = None
    qty_text: str | None = None
    source_text: str | None = Field(None, description="Which boxes or areas hold the item")


class MerchantRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    item: ItemRef | None = None
    source_text: str | None = None


class DetailSections(BaseModel):
    """The table and card sections a detail page carries besides its dependency tree."""

    model_config = ConfigDict(frozen=True)

    stats_rows: tuple[StatRow, ...] = ()
    produced_at: tuple[ItemRef, ...] = ()
    production: tuple[RecipeRow, ...] = ()
    crafting_materials: tuple[RecipeRow, ...] = ()
    dropped_by: tuple[DroppedByRow, ...] = ()
    treasure_box: tuple[TreasureBoxRow, ...] = ()
    wandering_merchant: tuple[MerchantRow, ...] = ()

    def row_counts(self) -> dict[str, int]:
        return {name: len(getattr(self, name)) for name in type(self).model_fields}


class IndexItem(BaseModel):
    """An entity as it appears on a category list page."""

    model_config = ConfigDict(frozen=True)

    slug: str = Field(..., min_length=1, description="Stable identifier, unique within one listing")
    name: str = Field(..., min_length=1)
    icon_url: str | None = None
    category: str | None = Field(None, description="Category label printed on the card")
    stats: dict[str, Number | None] = Field(
        default_factory=dict, description="Numeric attributes named by the category schema"
    )
    labels: dict[str, str | None] = Field(
        default_factory=dict, description="Short text attributes named by the category schema (e.g. rarity)"
    )
    description: str | None = None
    recipe: tuple[RecipeIngredient, ...] = ()

    def stat(self, key: str) -> Number | None:
        return self.stats.get(key)


class DetailRecord(IndexItem):
    """An IndexItem enriched with the data only the entity's own page carries."""

    tree: TreeNode | None = Field(None, description="Dependency tree; None when the page has none")
    stats_rows: tuple[StatRow, ...] = ()
    produced_at: tuple[ItemRef, ...] = ()
    production: tuple[RecipeRow, ...] = ()
    crafting_materials: tuple[RecipeRow, ...] = ()
    dropped_by: tuple[DroppedByRow, ...] = ()
    treasure_box: tuple[TreasureBoxRow, ...] = ()
    wandering_merchant: tuple[MerchantRow, ...] = ()
    from_listing: bool = Field(True, description="False when the record was synthesized from the slug alone")

    @classmethod
    def from_index_item(cls, item: IndexItem, **detail: Any) -> "DetailRecord":
        """Build a detail record that keeps every list-page value and adds the detail-only fields."""
        return cls(**item.model_dump(), **detail)

    @property
    def has_tree(self) -> bool:
        return self.tree is not None
