import json
import logging
import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .models import FormDescriptor, FormField, Heading, ImageRef, NavLink, PageData
from .urls import normalize_url, origin_of, url_to_slug

logger = logging.getLogger(__name__)

# North American numbers: optional +1, optional parens, - . or space separators
PHONE_RE = re.compile(r"(?:\+1[-.\s]?)?(?:\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4})")
EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# retina image names like logo@2x.png look like emails
_IMAGE_SUFFIXES = (".png", ".jpg", ".svg")

SOCIAL_DOMAINS = (
    "facebook.com", "fb.com",
    "instagram.com",
    "twitter.com", "x.com",
    "linkedin.com",
    "youtube.com",
    "yelp.com",
    "google.com/maps", "maps.google.com",
    "tiktok.com",
    "nextdoor.com",
)

_SKIP_LINK_PREFIXES = ("#", "tel:", "mailto:", "javascript:")
_FILE_LINK_RE = re.compile(r"\.(pdf|jpg|jpeg|png|gif|svg|doc|docx|xls|xlsx|zip|mp4|mp3)$", re.IGNORECASE)
_TESTIMONIAL_CLASS_RE = re.compile(r"testimonial|review", re.IGNORECASE)

MIN_BODY_CHARS = 10                     # shorter fragments are boilerplate
MIN_TESTIMONIAL_CHARS = 20
MAX_TESTIMONIAL_CHARS = 2000


def _unique(items) -> list:
    """Deduplicate while keeping first-seen order."""
    return list(dict.fromkeys(items))


def _text(tag) -> str:
    return tag.get_text().strip()


def _get_meta_content(soup: BeautifulSoup, **attrs) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag:
        return (tag.get("content") or "").strip() or None
    return None


def _parse_json_ld(soup: BeautifulSoup) -> list:
    blocks = []
    for tag in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            blocks.append(json.loads(tag.string or ""))
        except (ValueError, RecursionError):
            # one broken block must not cost us the rest of the page
            logger.debug("Skipping invalid JSON-LD block")
    return blocks


def _find_postal_address(node) -> Optional[str]:
    """Depth-first search for a schema.org PostalAddress; first match wins."""
    if isinstance(node, list):
        for item in node:
            found = _find_postal_address(item)
            if found:
                return found
        return None

    if not isinstance(node, dict):
        return None

    if node.get("@type") == "PostalAddress":
        parts = [
            node.get("streetAddress"),
            node.get("addressLocality"),
            node.get("addressRegion"),
            node.get("postalCode"),
        ]
        parts = [str(p) for p in parts if p]
        return ", ".join(parts) if parts else None

    if node.get("address"):
        found = _find_postal_address(node["address"])
        if found:
            return found

    for value in node.values():
        if isinstance(value, (dict, list)):
            found = _find_postal_address(value)
            if found:
                return found
    return None


def _links_from_soup(soup: BeautifulSoup, url: str, base_origin: str) -> list[str]:
    origin = origin_of(base_origin)
    links = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith(_SKIP_LINK_PREFIXES):
            continue
        if _FILE_LINK_RE.search(href):
            continue
        try:
            absolute = urljoin(url, href)
        except ValueError:
            continue
        normalized = normalize_url(absolute, origin)
        if normalized:
            links.append(normalized)
    return _unique(links)


def extract_internal_links(html: str, url: str, base_origin: str) -> list[str]:
    """Same-origin page links of a document, normalized and deduplicated."""
    soup = BeautifulSoup(html, "lxml")
    return _links_from_soup(soup, url, base_origin)


def _extract_images(soup: BeautifulSoup, url: str) -> list[ImageRef]:
    images = []
    for img in soup.find_all("img"):
        src = img.get("src")
        if not src:
            continue
        try:
            absolute = urljoin(url, src)
        except ValueError:
            absolute = src
        filename = absolute.split("/")[-1].split("?")[0]
        images.append(ImageRef(src=absolute, alt=img.get("alt") or "", filename=filename))
    return images


def _extract_testimonials(soup: BeautifulSoup) -> list[str]:
    candidates = soup.find_all(attrs={"class": _TESTIMONIAL_CLASS_RE}) + soup.find_all("blockquote")
    texts = []
    for tag in candidates:
        text = _text(tag)
        if MIN_TESTIMONIAL_CHARS < len(text) < MAX_TESTIMONIAL_CHARS:
            texts.append(text)
    return _unique(texts)


def _extract_forms(soup: BeautifulSoup) -> list[FormDescriptor]:
    forms = []
    for form in soup.find_all("form"):
        fields = [
            FormField(
                name=field.get("name") or "",
                type=field.get("type") or field.name,
                placeholder=field.get("placeholder") or "",
            )
            for field in form.find_all(["input", "textarea", "select"])
        ]
        if not fields:
            continue
        forms.append(FormDescriptor(
            action=form.get("action") or "",
            method=form.get("method") or "get",
            fields=fields,
        ))
    return forms


def _extract_navigation(soup: BeautifulSoup) -> list[NavLink]:
    navigation = []
    for anchor in soup.select("nav a, header a"):
        text = _text(anchor)
        href = anchor.get("href") or ""
        if text and href and not href.startswith(("#", "tel:", "mailto:")):
            navigation.append(NavLink(text=text, href=href))
    return navigation


def extract_page_data(html: str, url: str, base_origin: str) -> PageData:
    """
    Turn one fetched page into a PageData record.

    `url` is the final URL after redirects, `base_origin` the site origin used
    for same-origin filtering. Deterministic and total: invalid JSON-LD blocks
    are skipped, nothing else can fail.
    """
    soup = BeautifulSoup(html, "lxml")

    # --- head ---
    title_tag = soup.find("title")
    title = (_text(title_tag) or None) if title_tag else None
    meta_description = _get_meta_content(soup, name="description")

    og_tags = {}
    for tag in soup.find_all("meta", attrs={"property": re.compile(r"^og:")}):
        prop, content = tag.get("property"), tag.get("content")
        if prop and content:
            og_tags[prop] = content

    canonical_tag = soup.find("link", rel="canonical")
    canonical = (canonical_tag.get("href") or None) if canonical_tag else None

    schema = _parse_json_ld(soup)

    # --- content ---
    headings = []
    for tag in soup.find_all(["h1", "h2", "h3"]):
        text = _text(tag)
        if text:
            headings.append(Heading(level=int(tag.name[1]), text=text))

    body_parts = [_text(tag) for tag in soup.find_all(["p", "li", "blockquote"])]
    body_text = "\n".join(part for part in body_parts if len(part) > MIN_BODY_CHARS)

    # --- contact details (regex over the raw markup, not just visible text) ---
    phone_numbers = _unique(PHONE_RE.findall(html))
    email_addresses = _unique(
        email for email in EMAIL_RE.findall(html)
        if not any(suffix in email for suffix in _IMAGE_SUFFIXES)
    )

    physical_address = None
    for block in schema:
        physical_address = _find_postal_address(block)
        if physical_address:
            break
    if not physical_address:
        address_tag = soup.find("address")
        physical_address = (_text(address_tag) or None) if address_tag else None

    social_links = _unique(
        anchor["href"] for anchor in soup.find_all("a", href=True)
        if any(domain in anchor["href"] for domain in SOCIAL_DOMAINS)
    )

    return PageData(
        url=url,
        slug=url_to_slug(url, base_origin),
        title=title,
        meta_description=meta_description,
        og_tags=og_tags,
        canonical=canonical,
        schema=schema,
        headings=headings,
        body_text=body_text,
        images=_extract_images(soup, url),
        internal_links=_links_from_soup(soup, url, base_origin),
        phone_numbers=phone_numbers,
        email_addresses=email_addresses,
        physical_address=physical_address,
        social_links=social_links,
        testimonials=_extract_testimonials(soup),
        forms=_extract_forms(soup),
        navigation=_extract_navigation(soup),
    )
