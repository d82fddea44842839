import re
from typing import Optional
from urllib.parse import urljoin, urlsplit

_DEFAULT_PORTS = {"http": 80, "https": 443}


def slugify(name: str) -> str:
    """Lowercase, collapse anything non-alphanumeric into single dashes."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")


def origin_of(url: str) -> str:
    """scheme://host[:port] with the default port dropped. Raises ValueError on a bad port."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = parts.hostname or ""
    port = parts.port
    if port is None or port == _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def normalize_url(url: str, base_origin: str) -> Optional[str]:
    """
    Resolve url against base_origin and reduce it to a dedup key.

    Cross-origin and non-http(s) URLs give None. Fragment and query string
    are dropped, and a single trailing slash is removed except on the root path.
    """
    try:
        absolute = urljoin(base_origin, url.strip())
        parts = urlsplit(absolute)
        if parts.scheme.lower() not in _DEFAULT_PORTS or not parts.hostname:
            return None
        origin = origin_of(absolute)
        if origin != origin_of(base_origin):
            return None
    except ValueError:
        return None

    path = parts.path or "/"
    normalized = f"{origin}{path}"
    if normalized.endswith("/") and path != "/":
        normalized = normalized[:-1]
    return normalized


def url_to_slug(url: str, base_origin: str) -> str:
    """Filesystem-safe key for a page: /services/plumbing.html -> services--plumbing."""
    try:
        path = urlsplit(urljoin(base_origin, url)).path
    except ValueError:
        return "unknown"

    if path in ("", "/"):
        return "index"

    path = re.sub(r"^/", "", path)
    path = re.sub(r"/$", "", path)
    path = re.sub(r"\.html$", "", path)
    return path.replace("/", "--")
