# ABOUTME: Rich table and tree builders for the inspection CLI
# ABOUTME: Renders category lists, detail records, dependency trees and logging status

from typing import Any

from rich.box import ROUNDED, SIMPLE
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from paldex_harvest.extraction.schema import CategorySchema
from paldex_harvest.models import DetailRecord, IndexItem, ItemRef, RecipeRow, TreeNode


def create_key_value_table(
    title: str,
    data: dict[str, str],
    title_style: str = "bold cyan",
    key_style: str = "bold blue",
    value_style: str = "green",
    box_style=ROUNDED,
) -> Table:
    """Create a two-column key/value table.

    Args:
        title: Table title
        data: Dictionary of key-value pairs to display
        title_style: Style for the table title
        key_style: Style for the key column
        value_style: Style for the value column
        box_style: Border style for the table

    Returns:
        Formatted Rich table ready for printing
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style="bold magenta",
        border_style="cyan",
        title_justify="left",
        expand=False,
    )

    table.add_column("Field", style=key_style, no_wrap=False)
    table.add_column("Value", style=value_style, no_wrap=False)

    for key, value in data.items():
        table.add_row(key, str(value))

    return table


def create_multi_column_table(
    title: str,
    columns: list[tuple[str, str]],
    rows: list[list[str]],
    title_style: str = "bold cyan",
    header_style: str = "bold magenta",
    alternate_row_styles: list[str] | None = None,
    box_style=ROUNDED,
) -> Table:
    """Create a multi-column table with zebra striping.

    Args:
        title: Table title
        columns: List of (column_name, column_style) tuples
        rows: List of row data
        title_style: Style for the table title
        header_style: Style for column headers
        alternate_row_styles: Alternating row styles for zebra striping
        box_style: Border style for the table

    Returns:
        Formatted Rich table ready for printing
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style=header_style,
        border_style="cyan",
        title_justify="left",
        row_styles=alternate_row_styles or ["", "dim"],
        expand=True,
    )

    for name, style in columns:
        table.add_column(name, style=style)

    for row in rows:
        table.add_row(*row)

    return table


def _fmt(value: Any) -> str:
    if value is None:
        return "—"
    return str(value)


def _ref_name(ref: ItemRef | None) -> str | None:
    return ref.name if ref else None


def _recipe_row_text(row: RecipeRow) -> str:
    materials = " + ".join(f"{m.name} x{_fmt(m.qty)}" for m in row.materials) or "—"
    product = f"{row.product.name} x{_fmt(row.product.qty)}" if row.product else "—"
    text = f"{materials} → {product}"
    return f"{text} ({row.schematic_text})" if row.schematic_text else text


def create_categories_table(schemas: list[CategorySchema]) -> Table:
    rows = [
        [schema.key, schema.path, ", ".join(schema.field_keys) or "—"]
        for schema in schemas
    ]
    return create_multi_column_table(
        title="📚 Categories",
        columns=[("Key", "bold blue"), ("Page", "cyan"), ("Fields", "white")],
        rows=rows,
    )


def create_index_table(category: str, items: list[IndexItem]) -> Table:
    """Create a table of list-page items.

    Args:
        category: Category key shown in the title
        items: Parsed list items

    Returns:
        One row per item with its schema stats flattened into a column
    """
    rows = []
    for item in items:
        stats = ", ".join(f"{key}={_fmt(value)}" for key, value in item.stats.items())
        labels = ", ".join(f"{key}={_fmt(value)}" for key, value in item.labels.items() if value)
        rows.append([item.slug, item.name, _fmt(item.category), " ".join(filter(None, [stats, labels])) or "—",
                     str(len(item.recipe))])

    return create_multi_column_table(
        title=f"📦 {category} ({len(items)} items)",
        columns=[("Slug", "bold blue"), ("Name", "green"), ("Category", "cyan"), ("Stats", "white"),
                 ("Ingredients", "magenta")],
        rows=rows,
    )


def create_detail_table(record: DetailRecord) -> Table:
    data = {
        "🆔 Slug": record.slug,
        "🏷️ Name": record.name,
        "📂 Category": _fmt(record.category),
        "🖼️ Icon": _fmt(record.icon_url),
        "📝 Description": _fmt(record.description),
        "📋 From Listing": "Yes" if record.from_listing else "No (synthesized)",
        "🌳 Tree": f"{record.tree.node_count()} nodes, depth {record.tree.depth()}" if record.tree else "None",
    }
    for key, value in record.stats.items():
        data[f"📊 {key}"] = _fmt(value)
    for key, value in record.labels.items():
        data[f"🔖 {key}"] = _fmt(value)
    for ingredient in record.recipe:
        data[f"🧱 {ingredient.name}"] = f"x{_fmt(ingredient.qty)}"
    for row in record.stats_rows:
        data[f"📈 {row.key}"] = _fmt(row.value_text)

    if record.produced_at:
        data["🏭 Produced At"] = ", ".join(ref.name for ref in record.produced_at)
    for title, recipe_rows in (("⚒️ Production", record.production), ("🧪 Crafting", record.crafting_materials)):
        if recipe_rows:
            data[title] = "\n".join(_recipe_row_text(row) for row in recipe_rows)
    if record.dropped_by:
        data["🐾 Dropped By"] = "\n".join(
            " ".join(filter(None, [_ref_name(row.pal), row.qty_text, f"({row.probability_text})"
                                   if row.probability_text else None]))
            for row in record.dropped_by
        )
    if record.treasure_box:
        data["🎁 Treasure Box"] = "\n".join(
            " ".join(filter(None, [_ref_name(row.item), row.qty_text, row.source_text])) for row in record.treasure_box
        )
    if record.wandering_merchant:
        data["🛒 Merchant"] = "\n".join(
            " ".join(filter(None, [_ref_name(row.item), row.source_text])) for row in record.wandering_merchant
        )

    return create_key_value_table(title=f"🔍 {record.name}", data=data, title_style="bold green",
                                  key_style="cyan", value_style="white")


def create_dependency_tree(node: TreeNode) -> Tree:
    """Render a dependency tree as a rich Tree, quantities next to names."""

    def label(n: TreeNode) -> str:
        qty = f" [magenta]x{n.qty}[/magenta]" if n.qty is not None else ""
        return f"[bold]{n.name}[/bold] [dim]({n.slug})[/dim]{qty}"

    tree = Tree(label(node), guide_style="cyan")
    stack: list[tuple[TreeNode, Tree]] = [(node, tree)]
    while stack:
        current, branch = stack.pop()
        for child in current.children:
            stack.append((child, branch.add(label(child))))
    return tree


def create_logging_status_table(status: dict[str, Any]) -> Table:
    """Create a logging configuration status table.

    Args:
        status: Logging status dictionary

    Returns:
        Styled logging configuration table
    """
    logging_data = {
        "🔧 Mode": status["mode"].title(),
        "📁 Log Directory": status["log_directory"] or "N/A (production mode)",
        "🔇 Suppressed Libraries": ", ".join(status["third_party_suppressed"]),
    }

    if status["log_files"]["main"]:
        logging_data["📝 Main Log"] = status["log_files"]["main"]
    if status["log_files"]["json"]:
        logging_data["📊 JSON Log"] = status["log_files"]["json"]
    if status["log_files"]["errors"]:
        logging_data["🚨 Error Log"] = status["log_files"]["errors"]

    return create_key_value_table(
        title="🔍 Logging Configuration",
        data=logging_data,
        title_style="bold green",
        key_style="blue",
        value_style="white",
        box_style=SIMPLE,
    )


def print_rich_table(console: Console, table: Table | Tree) -> None:
    """Print a rich table with consistent spacing.

    Args:
        console: Rich console instance
        table: Configured table (or tree) to print
    """
    console.print()
    console.print(table)
    console.print()
