from dataclasses import asdict, dataclass, field, replace
from typing import Optional


@dataclass(frozen=True)
class Heading:
    level: int                          # 1, 2 or 3
    text: str


@dataclass(frozen=True)
class ImageRef:
    src: str                            # absolute URL
    alt: str
    filename: str


@dataclass(frozen=True)
class FormField:
    name: str
    type: str                           # input type, or tag name for textarea/select
    placeholder: str


@dataclass(frozen=True)
class FormDescriptor:
    action: str
    method: str
    fields: list[FormField] = field(default_factory=list)


@dataclass(frozen=True)
class NavLink:
    text: str
    href: str


@dataclass(frozen=True)
class PageData:
    url: str                            # final URL after redirects
    slug: str

    # head
    title: Optional[str] = None
    meta_description: Optional[str] = None
    og_tags: dict[str, str] = field(default_factory=dict)
    canonical: Optional[str] = None
    schema: list = field(default_factory=list)      # parsed JSON-LD blocks

    # content
    headings: list[Heading] = field(default_factory=list)
    body_text: str = ""
    images: list[ImageRef] = field(default_factory=list)
    internal_links: list[str] = field(default_factory=list)

    # business details
    phone_numbers: list[str] = field(default_factory=list)
    email_addresses: list[str] = field(default_factory=list)
    physical_address: Optional[str] = None
    social_links: list[str] = field(default_factory=list)
    testimonials: list[str] = field(default_factory=list)
    forms: list[FormDescriptor] = field(default_factory=list)
    navigation: list[NavLink] = field(default_factory=list)

    # set after the HTML snapshot is stored
    snapshot_path: Optional[str] = None

    def with_snapshot(self, path: str) -> "PageData":
        return replace(self, snapshot_path=path)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SkippedUrl:
    url: str
    error: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GlobalInfo:
    """Site-wide contact details aggregated across every scraped page."""

    phone_numbers: list[str] = field(default_factory=list)
    email_addresses: list[str] = field(default_factory=list)
    physical_address: Optional[str] = None
    social_links: list[str] = field(default_factory=list)
    navigation: list[NavLink] = field(default_factory=list)


@dataclass
class ScrapedData:
    scraped_at: str
    source_url: str
    canonical_prefix: str               # "www" | "non-www"
    ssl: bool
    total_pages: int = 0
    sitemap_urls: list[str] = field(default_factory=list)
    robots_txt: Optional[str] = None
    global_info: GlobalInfo = field(default_factory=GlobalInfo)
    pages: list[PageData] = field(default_factory=list)
    skipped: list[SkippedUrl] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        # "global" is a keyword in Python but the stored shape uses it as-is
        data["global"] = data.pop("global_info")
        return data


@dataclass
class DiscoveryResult:
    client_slug: str
    source_url: str
    canonical_prefix: str
    ssl: bool
    robots_txt: Optional[str]
    robots_disallowed: list[str]
    sitemap_urls: list[str]
    pages_to_scrape: list[str]
    homepage: PageData

    def to_dict(self) -> dict:
        return asdict(self)
