"""
Where each editable `data-section` of a generated site lives in its repository.

Component sections have a dedicated file. Page sections are inline in a page
file and are found through the URL of the page currently being edited.
"""
from typing import Optional

COMPONENT_SECTIONS: dict[str, str] = {
    "navigation": "src/components/sections/Navigation.astro",
    "hero": "src/components/sections/Hero.astro",
    "services": "src/components/sections/Services.astro",
    "about": "src/components/sections/About.astro",
    "stats": "src/components/sections/Stats.astro",
    "how-it-works": "src/components/sections/HowItWorks.astro",
    "testimonials": "src/components/sections/Testimonials.astro",
    "faq": "src/components/sections/FAQ.astro",
    "cta-banner": "src/components/sections/CTABanner.astro",
    "footer": "src/components/sections/Footer.astro",
}

PAGE_SECTIONS = frozenset({
    "service-hero",
    "service-overview",
    "service-features",
    "service-process",
    "service-faq",
    "service-cta",
    "contact",
})

TEMPLATE_SERVICE_SLUGS = ("service-one", "service-two", "service-three")


def page_file_map(service_slugs=TEMPLATE_SERVICE_SLUGS) -> dict[str, str]:
    """Page pathname (trailing slash) -> page source file."""
    pages = {f"/services/{slug}/": f"src/pages/services/{slug}.astro" for slug in service_slugs}
    pages["/contact/"] = "src/pages/contact.astro"
    return pages


def resolve_file_path(section: str, current_page: str, page_files: Optional[dict[str, str]] = None) -> Optional[str]:
    """Map a data-section value on a given page to its source file, or None."""
    if section in COMPONENT_SECTIONS:
        return COMPONENT_SECTIONS[section]
    if section in PAGE_SECTIONS:
        pages = page_files if page_files is not None else page_file_map()
        normalized = current_page if current_page.endswith("/") else current_page + "/"
        return pages.get(normalized)
    return None
