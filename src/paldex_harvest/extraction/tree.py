# ABOUTME: Rebuilds crafting dependency trees from detail pages (treant JSON payload or nested tree markup)
# ABOUTME: Depth, fan-out, node-count and ancestor-cycle guards truncate hostile input instead of failing

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from paldex_harvest.extraction.blocks import child_blocks, extract_first_block, remove_blocks
from paldex_harvest.extraction.fields import extract_qty, parse_item_link
from paldex_harvest.extraction.text import decode_entities, parse_qty
from paldex_harvest.extraction.tokenizer import StartTag, tokenize
from paldex_harvest.extraction.urls import SiteUrls, humanize_slug
from paldex_harvest.models import TreeNode
from paldex_harvest.utils.logging import get_logger

logger = get_logger(__name__)

TREANT_ATTR = "data-treant"
TREE_NODE_TOKEN = "tree-node"
TREE_CHILDREN_TOKEN = "tree-children"


@dataclass(frozen=True)
class TreeLimits:
    """Upper bounds applied while a tree is rebuilt."""

    max_depth: int = 32
    max_children: int = 64
    max_nodes: int = 2048


@dataclass
class _Budget:
    limits: TreeLimits
    used: int = 0
    truncated: list[str] = field(default_factory=list)

    def take(self) -> bool:
        if self.used >= self.limits.max_nodes:
            self.note("node budget")
            return False
        self.used += 1
        return True

    def note(self, reason: str) -> None:
        if reason not in self.truncated:
            self.truncated.append(reason)


@dataclass
class _RawNode:
    """Encoding-neutral view of a node before guards are applied."""

    slug: str | None
    name: str | None
    icon_url: str | None
    qty: int | None
    children: Iterator["_RawNode"]


def _build(raw: _RawNode, level: int, ancestors: frozenset[str], budget: _Budget) -> TreeNode | None:
    slug = raw.slug
    name = raw.name or humanize_slug(slug)
    if not slug or not name or slug in ancestors:
        return None
    if not budget.take():
        return None

    children: list[TreeNode] = []
    if level < budget.limits.max_depth:
        path = ancestors | {slug}
        for child in raw.children:
            if len(children) >= budget.limits.max_children:
                budget.note("fan-out")
                break
            node = _build(child, level + 1, path, budget)
            if node is not None:
                children.append(node)
    elif next(raw.children, None) is not None:
        budget.note("depth")

    return TreeNode(slug=slug, name=name, icon_url=raw.icon_url, qty=raw.qty, children=tuple(children))


# treant payload


def _treant_payload(detail_html: str) -> Any | None:
    for token in tokenize(detail_html):
        value = token.get(TREANT_ATTR) if isinstance(token, StartTag) else None
        if value is None:
            continue
        text = decode_entities(value).strip()
        if not text:
            return None
        try:
            payload = json.loads(text)
        except (ValueError, RecursionError) as e:
            logger.debug("Undecodable treant payload", length=len(text), error_type=type(e).__name__)
            return None
        if isinstance(payload, dict) and isinstance(payload.get("nodeStructure"), dict):
            payload = payload["nodeStructure"]
        return payload if isinstance(payload, dict) else None
    return None


def _treant_node(data: Any, urls: SiteUrls) -> _RawNode:
    data = data if isinstance(data, dict) else {}
    link = data.get("link") if isinstance(data.get("link"), dict) else {}
    text = data.get("text") if isinstance(data.get("text"), dict) else {}
    href = link.get("href") if link.get("href") is not None else link.get("url")
    image = data.get("image")
    raw_children = data.get("children")
    label = text.get("name")

    return _RawNode(
        slug=urls.normalize_slug(str(href)) if href is not None else None,
        name=None,
        icon_url=urls.absolute(str(image)) if image is not None else None,
        qty=parse_qty(label) if isinstance(label, (str, int, float)) else None,
        children=(_treant_node(child, urls) for child in (raw_children if isinstance(raw_children, list) else [])),
    )


# nested markup


def _markup_node(block: str, urls: SiteUrls) -> _RawNode:
    children_block = extract_first_block(block, TREE_CHILDREN_TOKEN)
    own = remove_blocks(block, TREE_CHILDREN_TOKEN)
    link = parse_item_link(own, urls) or parse_item_link(own, urls, require_class=False)

    child_nodes = child_blocks(children_block, "div", TREE_NODE_TOKEN) if children_block else []
    return _RawNode(
        slug=link.slug if link else None,
        name=link.name if link else None,
        icon_url=link.icon_url if link else None,
        qty=extract_qty(own),
        children=(_markup_node(child, urls) for child in child_nodes),
    )


def parse_dependency_tree(
    detail_html: str | None,
    *,
    root_slug: str | None = None,
    limits: TreeLimits | None = None,
    urls: SiteUrls | None = None,
) -> TreeNode | None:
    """Rebuild the dependency tree embedded in a detail page.

    The ``data-treant`` JSON payload is tried first. When it is missing,
    undecodable or yields no root, nested ``tree-node`` / ``tree-children``
    markup is tried.

    Args:
        detail_html: Raw detail page markup
        root_slug: Slug given to a root node that carries no link of its own
        limits: Depth, fan-out and node-count caps
        urls: Site URL builder used for slug and icon normalization

    Returns:
        The root node, or None when the page has no recognisable tree
    """
    if not detail_html:
        return None
    urls = urls or SiteUrls()
    limits = limits or TreeLimits()

    payload = _treant_payload(detail_html)
    if payload is not None:
        root = _build_root(_treant_node(payload, urls), "treant", root_slug, limits, urls)
        if root is not None:
            return root

    root_block = extract_first_block(detail_html, TREE_NODE_TOKEN)
    if root_block is None:
        return None
    return _build_root(_markup_node(root_block, urls), "markup", root_slug, limits, urls)


def _build_root(raw: _RawNode, source: str, root_slug: str | None, limits: TreeLimits,
                urls: SiteUrls) -> TreeNode | None:
    if not raw.slug:
        raw.slug = urls.normalize_slug(root_slug)

    budget = _Budget(limits)
    root = _build(raw, 1, frozenset(), budget)
    if budget.truncated:
        logger.info("Dependency tree truncated", root=raw.slug, source=source, reasons=budget.truncated)
    return root
