"""URL canonicalization for links found in search results and sitemaps."""

import re
from typing import NamedTuple, Optional
from urllib.parse import parse_qs, unquote, urljoin, urlsplit, urlunsplit

ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)
DEFAULT_PORTS = {"http": 80, "https": 443}
MAX_UNWRAP_DEPTH = 3


class RedirectRule(NamedTuple):
    """An outbound-link wrapper that carries the destination in a query parameter."""

    host_suffix: str
    path: str
    param: str


DEFAULT_REDIRECT_RULES = (
    RedirectRule("duckduckgo.com", "/l/", "uddg"),
    RedirectRule("google.com", "/url", "q"),
)


def _host_matches(host: str, suffix: str) -> bool:
    return host == suffix or host.endswith("." + suffix)


def _unwrap(parts, rules) -> Optional[str]:
    """Return the destination carried by a redirect wrapper, if any."""
    host = (parts.hostname or "").lower()
    for rule in rules:
        if parts.path == rule.path and _host_matches(host, rule.host_suffix):
            values = parse_qs(parts.query).get(rule.param)
            if values and values[0]:
                return values[0]
    return None


def _normalize(parts) -> Optional[str]:
    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        return None
    host = (parts.hostname or "").lower()
    if not host:
        return None

    netloc = host
    if ":" in host:
        netloc = f"[{host}]"
    port = parts.port
    if port is not None and port != DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


def canonicalize(
    raw: Optional[str],
    base: str = "https://duckduckgo.com",
    rules=DEFAULT_REDIRECT_RULES,
) -> Optional[str]:
    """Resolve a raw href into an absolute, comparable URL.

    Relative and protocol-relative hrefs are resolved against ``base``.
    Redirect wrappers (e.g. ``/l/?uddg=...``) are replaced by the URL they
    point to, so two wrappers around the same destination collapse to one
    identity.

    Args:
        raw: href as found in the source payload
        base: Origin of the page the href was found on
        rules: Redirect wrapper rules

    Returns:
        Canonical URL, or None when ``raw`` is not a usable http(s) URL
    """
    if not raw:
        return None
    url = raw.strip()
    if not url:
        return None

    try:
        for _ in range(MAX_UNWRAP_DEPTH + 1):
            if not ABSOLUTE_URL.match(url):
                url = urljoin(base, url)
            parts = urlsplit(url)
            inner = _unwrap(parts, rules)
            if inner is None:
                return _normalize(parts)
            url = inner.strip()
            if not ABSOLUTE_URL.match(url):
                return None
    except ValueError:
        return None

    return None


def title_from_url(url: str) -> str:
    """Derive a readable title from the last path segment of a URL."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    segment = path.rstrip("/").split("/")[-1] if path else ""
    return re.sub(r"[-_]", " ", unquote(segment)).strip()
