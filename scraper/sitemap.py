import logging

from lxml import etree

from .urls import normalize_url, origin_of

logger = logging.getLogger(__name__)


def parse_sitemap_xml(xml: str, base_origin: str) -> list[str]:
    """
    Return the normalized <url><loc> entries of a sitemap.

    Namespaces are ignored. Entries that fail normalization (other origin,
    unparseable) are dropped; malformed XML yields whatever could be recovered.
    """
    if not xml or not xml.strip():
        return []

    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False)
    try:
        root = etree.fromstring(xml.encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError as exc:
        logger.warning("Unreadable sitemap: %s", exc)
        return []
    if root is None:
        return []

    origin = origin_of(base_origin)
    urls: list[str] = []
    for loc in root.findall(".//{*}url/{*}loc"):
        text = (loc.text or "").strip()
        if not text:
            continue
        normalized = normalize_url(text, origin)
        if normalized:
            urls.append(normalized)
    return urls
