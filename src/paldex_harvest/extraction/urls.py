# ABOUTME: Slug and URL normalization for hrefs found on list, detail and tree markup
# ABOUTME: Canonicalizes absolute, locale-prefixed, bare and percent-encoded spellings into one slug

import html
import re
from urllib.parse import quote, unquote, urlsplit

DEFAULT_BASE_URL = "https://paldb.cc"
DEFAULT_CDN_BASE_URL = "https://cdn.paldb.cc"
DEFAULT_LOCALE = "en"

# Site-relative paths the upstream serves from its CDN origin
CDN_PATH_PREFIXES = ("/image/", "/cache/", "/img/")


def _cut_query(value: str) -> str:
    return re.split(r"[?#]", value, maxsplit=1)[0]


def _first_segment(path: str) -> str:
    return _cut_query(path).lstrip("/").split("/", 1)[0]


def normalize_slug(href_or_slug: str | None, locale: str = DEFAULT_LOCALE) -> str | None:
    """Turn any href/slug spelling into the bare slug, or None when nothing usable remains.

    Examples:
        >>> normalize_slug("https://paldb.cc/en/Wood_Wall")
        'Wood_Wall'
        >>> normalize_slug("/en/Wood_Wall")
        'Wood_Wall'
        >>> normalize_slug("Wood%5FWall")
        'Wood_Wall'
    """
    if href_or_slug is None:
        return None
    raw = unquote(html.unescape(str(href_or_slug))).strip()
    if not raw:
        return None

    prefix = f"/{locale.strip('/')}/"

    if re.match(r"^(?:https?:)?//", raw, re.IGNORECASE):
        try:
            path = urlsplit(raw if not raw.startswith("//") else f"https:{raw}").path
        except ValueError:
            return None
        # The locale prefix must lead the path, as it does for site-relative hrefs
        slug = _first_segment(path[len(prefix) :]) if path.lower().startswith(prefix.lower()) else None
    elif raw.lower().startswith(prefix.lower()):
        slug = _first_segment(raw[len(prefix) :])
    elif not raw.startswith("/"):
        slug = raw
    else:
        slug = _first_segment(raw)

    slug = (slug or "").strip().strip("/")
    return slug or None


def humanize_slug(slug: str | None) -> str | None:
    """Derive a display name from a slug: last path segment, decoded, underscores as spaces."""
    raw = (slug or "").strip()
    if not raw:
        return None
    last = [part for part in raw.split("/") if part]
    base = _cut_query(last[-1] if last else raw)
    name = re.sub(r"\s+", " ", unquote(base).replace("_", " ")).strip()
    return name or None


class SiteUrls:
    """Builds absolute URLs for one upstream site and locale."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        cdn_base_url: str = DEFAULT_CDN_BASE_URL,
        locale: str = DEFAULT_LOCALE,
    ):
        self.base_url = base_url.rstrip("/")
        self.cdn_base_url = cdn_base_url.rstrip("/")
        self.locale = locale.strip("/")

    def list_url(self, category_path: str) -> str:
        return f"{self.base_url}/{self.locale}/{category_path.strip('/')}"

    def detail_url(self, slug: str) -> str:
        return f"{self.base_url}/{self.locale}/{quote(slug, safe='_-.~()')}"

    def absolute(self, path_or_url: str | None) -> str | None:
        """Make an asset or page reference absolute, routing static asset paths to the CDN origin."""
        if path_or_url is None:
            return None
        value = html.unescape(str(path_or_url)).strip()
        if not value:
            return None
        if re.match(r"^https?://", value, re.IGNORECASE):
            return value
        if value.startswith("//"):
            return f"https:{value}"
        if value.startswith("/"):
            if value.startswith(CDN_PATH_PREFIXES):
                return f"{self.cdn_base_url}{value}"
            return f"{self.base_url}{value}"
        if value.startswith(tuple(prefix.lstrip("/") for prefix in CDN_PATH_PREFIXES)):
            return f"{self.cdn_base_url}/{value}"
        return f"{self.base_url}/{value}"

    def normalize_slug(self, href_or_slug: str | None) -> str | None:
        return normalize_slug(href_or_slug, self.locale)
