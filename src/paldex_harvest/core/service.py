# ABOUTME: High-level harvest API merging cached list pages with on-demand detail pages
# ABOUTME: Handles list caching, detail fallbacks, bounded detail concurrency and record synthesis

import asyncio
from collections.abc import Iterable

import httpx

from paldex_harvest.config import Config, get_config
from paldex_harvest.extraction.base import FetchError, InvalidSlugError, PageFetcher
from paldex_harvest.extraction.cards import parse_detail_sections
from paldex_harvest.extraction.listing import parse_listing
from paldex_harvest.extraction.schema import CATEGORIES, CategorySchema, get_schema
from paldex_harvest.extraction.tree import TreeLimits, parse_dependency_tree
from paldex_harvest.extraction.urls import SiteUrls, humanize_slug
from paldex_harvest.models import DetailRecord, DetailSections, IndexItem, TreeNode
from paldex_harvest.services.cache import TTLCache
from paldex_harvest.services.http import HttpPageFetcher
from paldex_harvest.utils.logging import get_logger, with_async_operation_context


class HarvestService:
    """Cache-first access to category listings and merged detail records."""

    def __init__(
        self,
        config: Config | None = None,
        fetcher: PageFetcher | None = None,
        cache: TTLCache | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = config or get_config()
        self.urls = SiteUrls(self.config.base_url, self.config.cdn_base_url, self.config.locale)
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or HttpPageFetcher(self.config, client=client)
        self.cache = cache or TTLCache()
        self.tree_limits = TreeLimits(
            max_depth=self.config.tree_max_depth,
            max_children=self.config.tree_max_children,
            max_nodes=self.config.tree_max_nodes,
        )
        self._detail_slots = asyncio.Semaphore(self.config.max_concurrent_details)
        self.logger = get_logger(__name__)

    async def __aenter__(self) -> "HarvestService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the HTTP client when this service created it."""
        if self._owns_fetcher and isinstance(self.fetcher, HttpPageFetcher):
            await self.fetcher.aclose()

    @staticmethod
    def list_categories() -> list[CategorySchema]:
        return list(CATEGORIES.values())

    async def fetch_list(self, category: str, *, force: bool = False) -> list[IndexItem]:
        """Fetch and parse a category list page, served from cache while fresh.

        Args:
            category: Category key (see ``list_categories``)
            force: Refetch even when a fresh copy is cached

        Returns:
            Parsed items, deduplicated by slug

        Raises:
            UnknownCategoryError: If the category has no schema
            FetchError: If the list page cannot be fetched
        """
        schema = get_schema(category)
        url = self.urls.list_url(schema.path)

        async def load() -> list[IndexItem]:
            html = await self.fetcher.fetch_html(url)
            items = parse_listing(html, schema, self.urls)
            self.logger.info("Parsed category list", category=schema.key, url=url, item_count=len(items))
            return items

        items = await self.cache.get_or_fetch(("list", schema.key), self.config.list_ttl_seconds, load, force=force)
        return list(items)

    async def warm_list(self, category: str) -> bool:
        """Prefetch a category list into the cache. Never raises; returns whether the list is now cached."""
        try:
            await self.fetch_list(category)
        except Exception as e:
            self.logger.warning("List warm-up failed", category=category, error=str(e), error_type=type(e).__name__)
            return False
        return True

    async def fetch_detail(self, category: str, slug: str, *, force: bool = False) -> DetailRecord:
        """Build the merged detail record of one entity.

        The list page supplies every card field; the detail page adds the
        dependency tree and its titled sections (stats, recipes, drops,
        treasure boxes, merchants). If the detail page fails or cannot be
        parsed the list values are returned with ``tree=None``. If the slug
        is not on the list page (or the list fails) a record is synthesized
        from the slug.

        Args:
            category: Category key
            slug: Entity slug, in any href spelling
            force: Refetch list and detail pages even when cached

        Returns:
            The merged record

        Raises:
            UnknownCategoryError: If the category has no schema
            InvalidSlugError: If the slug normalizes to nothing
            FetchError: If both the list page and the detail page fail
        """
        schema = get_schema(category)
        normalized = self.urls.normalize_slug(slug)
        if not normalized:
            raise InvalidSlugError(f"Slug {slug!r} does not name an entity")

        return await self._merge_detail(schema, normalized, force=force)

    @with_async_operation_context("fetch_details")
    async def fetch_details(self, category: str, slugs: Iterable[str], *, force: bool = False) -> list[DetailRecord]:
        """Fetch several detail records concurrently, at most ``max_concurrent_details`` pages at a time.

        Results keep the order of ``slugs``. The first failure propagates.
        """
        slugs = list(slugs)
        self.logger.info("Fetching detail batch", category=category, slug_count=len(slugs))
        return list(await asyncio.gather(*(self.fetch_detail(category, slug, force=force) for slug in slugs)))

    async def _fetch_detail_parts(
        self, schema: CategorySchema, slug: str, *, force: bool
    ) -> tuple[TreeNode | None, DetailSections]:
        url = self.urls.detail_url(slug)

        async def load() -> tuple[TreeNode | None, DetailSections]:
            async with self._detail_slots:
                html = await self.fetcher.fetch_html(url)
            tree = parse_dependency_tree(html, root_slug=slug, limits=self.tree_limits, urls=self.urls)
            return tree, parse_detail_sections(html, self.urls)

        return await self.cache.get_or_fetch(
            ("detail", schema.key, slug), self.config.detail_ttl_seconds, load, force=force
        )

    async def _merge_detail(self, schema: CategorySchema, slug: str, *, force: bool) -> DetailRecord:
        log = self.logger.bind(category=schema.key, slug=slug)

        list_error: FetchError | None = None
        listed: IndexItem | None = None
        try:
            items = await self.fetch_list(schema.key, force=force)
            listed = next((item for item in items if item.slug == slug), None)
        except FetchError as e:
            list_error = e
            log.warning("List page unavailable for detail merge", url=e.url, status_code=e.status_code)

        tree: TreeNode | None = None
        sections = DetailSections()
        try:
            tree, sections = await self._fetch_detail_parts(schema, slug, force=force)
        except FetchError as e:
            if list_error is not None:
                log.error("List and detail pages both failed", url=e.url, status_code=e.status_code)
                raise e from list_error
            log.warning("Detail page unavailable, returning list data only", url=e.url, status_code=e.status_code)
        except Exception as e:
            # Parse failures only cost the detail-only fields; they are not cached
            log.warning("Detail page could not be parsed", error=str(e), error_type=type(e).__name__)

        detail = {"tree": tree, **dict(sections)}
        if listed is not None:
            record = DetailRecord.from_index_item(listed, **detail)
        else:
            record = DetailRecord(
                slug=slug,
                name=humanize_slug(slug) or slug,
                category=schema.label,
                from_listing=False,
                **detail,
            )

        log.info(
            "Merged detail record",
            from_listing=record.from_listing,
            has_tree=record.has_tree,
            tree_nodes=tree.node_count() if tree else 0,
            **sections.row_counts(),
        )
        return record
