# ABOUTME: Inspection CLI built on asyncclick for native async support
# ABOUTME: Lists categories, parses category pages and shows merged detail records with their trees

import asyncclick as click
from pydantic import TypeAdapter
from rich.console import Console

from paldex_harvest.config import get_config
from paldex_harvest.extraction.base import ExtractionError
from paldex_harvest.extraction.schema import CategorySchema
from paldex_harvest.models import DetailRecord, IndexItem
from paldex_harvest.utils.logging import (
    LoggingMode,
    configure_logging,
    get_logging_status,
    with_category_context,
    with_operation_context,
)
from paldex_harvest.utils.rich_tables import (
    create_categories_table,
    create_dependency_tree,
    create_detail_table,
    create_index_table,
    create_logging_status_table,
    print_rich_table,
)

console = Console()

_INDEX_LIST = TypeAdapter(list[IndexItem])
_SCHEMA_LIST = TypeAdapter(list[CategorySchema])
_DETAIL_LIST = TypeAdapter(list[DetailRecord])


@click.command(name="categories")
@click.pass_context
async def categories(ctx):
    """
    📚 Show every category the harvester knows how to parse.
    """
    from paldex_harvest.core.service import HarvestService

    with with_operation_context("categories") as logger:
        schemas = HarvestService.list_categories()
        logger.debug("Listing categories", category_count=len(schemas))

    if ctx.obj["json_output"]:
        click.echo(_SCHEMA_LIST.dump_json(schemas, indent=2).decode())
        return
    print_rich_table(console, create_categories_table(schemas))


@click.command(name="list")
@click.argument("category")
@click.option("--force", is_flag=True, help="Bypass the cache and fetch the list page again")
@click.option("--limit", type=int, default=None, help="Show at most N items")
@click.pass_context
async def list_items(ctx, category: str, force: bool, limit: int | None):
    """
    📦 Fetch and parse one category list page.
    """
    from paldex_harvest.core.service import HarvestService

    with with_category_context(category) as logger:
        async with HarvestService() as service:
            try:
                items = await service.fetch_list(category, force=force)
            except ExtractionError as e:
                logger.error("List command failed", error=str(e), error_type=type(e).__name__)
                raise click.ClickException(str(e)) from e

        shown = items[:limit] if limit is not None else items
        logger.info("List command complete", item_count=len(items), shown=len(shown))

        if ctx.obj["json_output"]:
            click.echo(_INDEX_LIST.dump_json(shown, indent=2).decode())
            return
        print_rich_table(console, create_index_table(category, shown))


@click.command(name="detail")
@click.argument("category")
@click.argument("slugs", nargs=-1, required=True)
@click.option("--force", is_flag=True, help="Bypass the cache and fetch both pages again")
@click.pass_context
async def detail(ctx, category: str, slugs: tuple[str, ...], force: bool):
    """
    🔍 Show the merged detail records of one or more entities, including their dependency trees.
    """
    from paldex_harvest.core.service import HarvestService

    with with_category_context(category, slugs[0] if len(slugs) == 1 else None) as logger:
        async with HarvestService() as service:
            # One list fetch up front; every detail merge then reads it from the cache
            if not force:
                list_cached = await service.warm_list(category)
                logger.debug("List warm-up finished", list_cached=list_cached)
            try:
                records = await service.fetch_details(category, slugs, force=force)
            except ExtractionError as e:
                logger.error("Detail command failed", error=str(e), error_type=type(e).__name__)
                raise click.ClickException(str(e)) from e

        logger.info(
            "Detail command complete",
            record_count=len(records),
            with_tree=sum(record.has_tree for record in records),
            from_listing=sum(record.from_listing for record in records),
        )

        if ctx.obj["json_output"]:
            if len(records) == 1:
                click.echo(records[0].model_dump_json(indent=2))
            else:
                click.echo(_DETAIL_LIST.dump_json(records, indent=2).decode())
            return
        for record in records:
            print_rich_table(console, create_detail_table(record))
            if record.tree is not None:
                print_rich_table(console, create_dependency_tree(record.tree))
            else:
                console.print(f"[yellow]No dependency tree on the detail page of {record.slug}.[/yellow]")


def _initialize_logging(json_output: bool, log_level: str | None = None, log_file: str | None = None) -> None:
    """Initialize logging configuration."""
    try:
        config = get_config()
        mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE

        # Use config defaults when CLI parameters are not provided
        final_log_level = log_level or config.log_level
        final_log_file = log_file or (str(config.log_file) if config.log_file else None)

        configure_logging(mode=mode, log_level=final_log_level, log_file=final_log_file)
    except (FileNotFoundError, PermissionError, OSError):
        # Log directory not writable: fall back to stderr-only logging
        configure_logging(mode=LoggingMode.PRODUCTION, log_level=log_level or "INFO", log_file=None)


@click.command(name="logging-status")
def logging_status():
    """
    📊 Show current logging configuration and status.
    """
    status = get_logging_status()
    logging_table = create_logging_status_table(status)
    print_rich_table(console, logging_table)


@click.group(invoke_without_command=True)
@click.option("--json", is_flag=True, help="Print records as JSON and log structured JSON to stderr")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--log-file", help="Custom log file path")
@click.pass_context
def app(ctx, json: bool, log_level: str | None, log_file: str | None):
    """
    🌿 Paldex Harvest - typed records from paldb.cc category and detail pages

    Parses category list pages into items and merges them with detail pages
    and their crafting dependency trees.
    """
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json

    # Initialize logging once here instead of in each command
    _initialize_logging(json, log_level, log_file)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


app.add_command(categories)
app.add_command(list_items)
app.add_command(detail)
app.add_command(logging_status)


if __name__ == "__main__":
    app()
