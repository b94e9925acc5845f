# ABOUTME: DOM-free extraction of list cards and tables, dependency trees and detail cards from upstream HTML
# ABOUTME: Pipeline Stage 1: raw page markup to typed records, pure and synchronous

"""
Extraction Layer: Turn raw page markup into typed records

This layer handles:
- Balanced tag-block slicing over a streaming tokenizer
- Schema-driven card and table-row parsing for every category list page
- Dependency tree, stat card and titled table parsing for detail pages

Data Flow: Raw HTML → blocks → IndexItem / TreeNode / DetailSections → Merger
"""

from paldex_harvest.extraction.base import (
    ExtractionError,
    FetchError,
    InvalidSlugError,
    PageFetcher,
    UnknownCategoryError,
)
from paldex_harvest.extraction.blocks import child_blocks, extract_blocks, extract_first_block, iter_blocks
from paldex_harvest.extraction.cards import (
    extract_card_by_title,
    parse_detail_sections,
    parse_key_value_rows,
    parse_stat_cards,
)
from paldex_harvest.extraction.listing import parse_entity, parse_listing, parse_table_row
from paldex_harvest.extraction.schema import CATEGORIES, CategorySchema, get_schema
from paldex_harvest.extraction.tables import extract_table, table_rows
from paldex_harvest.extraction.tokenizer import tokenize
from paldex_harvest.extraction.tree import TreeLimits, parse_dependency_tree
from paldex_harvest.extraction.urls import SiteUrls, humanize_slug, normalize_slug

__all__ = [
    "CATEGORIES",
    "CategorySchema",
    "ExtractionError",
    "FetchError",
    "InvalidSlugError",
    "PageFetcher",
    "SiteUrls",
    "TreeLimits",
    "UnknownCategoryError",
    "child_blocks",
    "extract_blocks",
    "extract_card_by_title",
    "extract_first_block",
    "extract_table",
    "get_schema",
    "humanize_slug",
    "iter_blocks",
    "normalize_slug",
    "parse_dependency_tree",
    "parse_detail_sections",
    "parse_entity",
    "parse_key_value_rows",
    "parse_listing",
    "parse_stat_cards",
    "parse_table_row",
    "table_rows",
    "tokenize",
]
