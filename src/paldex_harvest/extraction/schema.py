# ABOUTME: Declarative per-category extraction schemas driving the single generic card parser
# ABOUTME: Each category lists its page path, card token and tagged field specs with fallback patterns

import re
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from paldex_harvest.extraction.base import UnknownCategoryError
from paldex_harvest.extraction.blocks import extract_first_block, find_start_tags
from paldex_harvest.extraction.text import first_match, html_to_text, parse_number

PANE_LABEL_KEY = "kind"

_BADGE = r"""<span\b[^>]*class=(?:"[^"]*\bborder\b[^"]*"|'[^']*\bborder\b[^']*')[^>]*>\s*([0-9][0-9,.]*)\s*</span>"""


class LabeledNumberField(BaseModel):
    """A number printed in a badge next to a text label, e.g. ``Technology`` → ``<span class="border p-1">2</span>``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["labeled_number"] = "labeled_number"
    key: str
    label: str
    integer: bool = True
    scope_token: str | None = Field(
        None, description="Class token of a sub-block to search first (e.g. the mini-stats column)"
    )

    def patterns(self) -> list[str]:
        label = re.escape(self.label)
        return [
            rf"{label}\s*</span>\s*(?:</span>\s*)?{_BADGE}",
            rf"{label}[\s\S]{{0,200}}?{_BADGE}",
        ]

    def extract(self, block: str) -> int | float | None:
        scopes = []
        if self.scope_token:
            scoped = extract_first_block(block, self.scope_token)
            if scoped:
                scopes.append(scoped)
        scopes.append(block)

        for scope in scopes:
            raw = first_match(scope, self.patterns())
            if raw is not None:
                return parse_number(raw, integer=self.integer)

        # plain-text fallback: "Technology: 2" / "Slots 10"
        raw = first_match(html_to_text(block), [rf"\b{re.escape(self.label)}\b\s*:?\s*([0-9][0-9,.]*)"])
        return parse_number(raw, integer=self.integer) if raw is not None else None


class ClassTextField(BaseModel):
    """Text of the first element whose class attribute matches a regular expression (e.g. a rarity badge)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["class_text"] = "class_text"
    key: str
    class_pattern: str
    tag: str = "span"

    def extract(self, block: str) -> str | None:
        regex = re.compile(self.class_pattern, re.IGNORECASE)
        for start_tag in find_start_tags(block, self.tag):
            if regex.search(start_tag.get("class") or ""):
                element = extract_first_block(block[start_tag.start :], None, self.tag)
                text = html_to_text(element) if element else None
                if text:
                    return text
        return None


FieldSpec = Annotated[LabeledNumberField | ClassTextField, Field(discriminator="kind")]


class TableColumn(BaseModel):
    """A numeric column of a listing table, read by cell position."""

    model_config = ConfigDict(frozen=True)

    key: str
    index: int = Field(..., ge=1, description="Cell position; cell 0 holds the entity link")
    integer: bool = False


class TablePane(BaseModel):
    """One tab pane of a table-layout listing page (e.g. ``#GroundMounts``)."""

    model_config = ConfigDict(frozen=True)

    pane_id: str
    label: str = Field(..., description="Stored under labels[PANE_LABEL_KEY] for every row of the pane")
    columns: tuple[TableColumn, ...] = ()


class CategorySchema(BaseModel):
    """How to find and read the entities of one category list page.

    ``cards`` pages hold one ``card itemPopup`` block per entity;
    ``tables`` pages hold one table row per entity inside tab panes.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Lookup key, lower-case")
    path: str = Field(..., description="Page path under the locale prefix, e.g. 'Storage'")
    label: str = Field(..., description="Category label used when a record has to be synthesized")
    layout: Literal["cards", "tables"] = "cards"
    panes: tuple[TablePane, ...] = ()
    card_token: str = "card itemPopup"
    icon_size_token: str = "size128"
    category_token: str = "me-auto"
    description_token: str = "card-body py-2"
    recipe_token: str = "recipes"
    recipe_row_token: str = "justify-content-between"
    field_specs: tuple[FieldSpec, ...] = ()

    @property
    def number_fields(self) -> tuple[LabeledNumberField, ...]:
        return tuple(f for f in self.field_specs if isinstance(f, LabeledNumberField))

    @property
    def text_fields(self) -> tuple[ClassTextField, ...]:
        return tuple(f for f in self.field_specs if isinstance(f, ClassTextField))

    @property
    def field_keys(self) -> list[str]:
        """Keys of every stat or label this schema fills, in declaration order."""
        keys = [spec.key for spec in self.field_specs]
        for pane in self.panes:
            keys.extend(column.key for column in pane.columns)
        if self.panes:
            keys.append(PANE_LABEL_KEY)
        return list(dict.fromkeys(keys))


def _tech(**kwargs) -> LabeledNumberField:
    return LabeledNumberField(key="technology_level", label="Technology", **kwargs)


RARITY = ClassTextField(key="rarity", class_pattern=r"\bhover_text_rarity\d+\b")
MINI_STATS = "d-flex flex-column small"


def _construction(key: str, path: str, *extra: FieldSpec) -> CategorySchema:
    return CategorySchema(key=key, path=path, label=path.replace("_", " "), field_specs=(_tech(), *extra))


def _item(key: str, path: str, *extra: FieldSpec) -> CategorySchema:
    return CategorySchema(key=key, path=path, label=path.replace("_", " "), field_specs=(RARITY, _tech(), *extra))


_LAND_AND_AIR_COLUMNS = (
    TableColumn(key="run_speed", index=1),
    TableColumn(key="ride_sprint_speed", index=2),
    TableColumn(key="technology_level", index=3, integer=True),
    TableColumn(key="gravity_scale", index=4),
    TableColumn(key="jump_z_velocity", index=5),
    TableColumn(key="stamina", index=6),
)

MOUNTS = CategorySchema(
    key="mounts",
    path="Mounts",
    label="Mounts",
    layout="tables",
    panes=(
        TablePane(pane_id="GroundMounts", label="ground", columns=_LAND_AND_AIR_COLUMNS),
        TablePane(pane_id="FlyingMounts", label="flying", columns=_LAND_AND_AIR_COLUMNS),
        TablePane(
            pane_id="WaterMounts",
            label="water",
            columns=(
                TableColumn(key="swim_speed", index=1),
                TableColumn(key="swim_dash_speed", index=2),
                TableColumn(key="technology_level", index=3, integer=True),
                TableColumn(key="stamina", index=4),
            ),
        ),
    ),
)

CATEGORIES: dict[str, CategorySchema] = {
    schema.key: schema
    for schema in (
        # Construction
        _construction("storage", "Storage", LabeledNumberField(key="slots", label="Slots")),
        _construction("defenses", "Defenses"),
        _construction("food", "Food"),
        _construction("foundations", "Foundations"),
        _construction("furniture", "Furniture"),
        _construction("infrastructure", "Infrastructure"),
        _construction("lighting", "Lighting"),
        _construction("production", "Production"),
        _construction("other", "Other"),
        # Items
        _item("material", "Material"),
        _item("ingredient", "Ingredient"),
        _item("key_items", "Key_Items"),
        _item("schematic", "Schematic"),
        _item("sphere", "Sphere"),
        _item("sphere_module", "Sphere_Module"),
        _item("glider", "Glider"),
        _item(
            "armor",
            "Armor",
            LabeledNumberField(key="shield", label="Shield", scope_token=MINI_STATS),
            LabeledNumberField(key="defense", label="Defense", scope_token=MINI_STATS),
            LabeledNumberField(key="health", label="Health", scope_token=MINI_STATS),
        ),
        MOUNTS,
    )
}


def get_schema(category: str) -> CategorySchema:
    """Look up a category schema by key (case-insensitive; the page path is accepted too)."""
    key = (category or "").strip().lower()
    schema = CATEGORIES.get(key)
    if schema is None:
        schema = next((s for s in CATEGORIES.values() if s.path.lower() == key), None)
    if schema is None:
        raise UnknownCategoryError(category)
    return schema
