import json
import re
from typing import Optional

from .sections import COMPONENT_SECTIONS, PAGE_SECTIONS

_FENCE_RE = re.compile(r"```[\w-]*\n?(.*?)\n?```", re.DOTALL)
_SERVICE_SLUG_RE = re.compile(r"""slug:\s*["']([^"']+)["']""")
_SERVICE_FILE_RE = re.compile(r"services/(.+)\.astro")
_LOGO_MIME_RE = re.compile(r"^data:image/([\w+]+);base64,")

SECTION_COMPONENT_FILES = list(COMPONENT_SECTIONS.values())


def strip_fences(content: str) -> str:
    """Remove one markdown code fence wrapping the whole reply, if present."""
    text = content.strip()
    match = _FENCE_RE.fullmatch(text)
    return match.group(1) if match else text


def parse_service_slugs(site_config_source: str) -> list[str]:
    """Service slugs declared in a generated siteConfig.ts (`slug: "..."`)."""
    return _SERVICE_SLUG_RE.findall(site_config_source)


def site_config_import_path(file_path: str) -> Optional[str]:
    """Relative module path a generated file must use to import siteConfig."""
    if "components/sections/" in file_path or "pages/services/" in file_path:
        return "../../data/siteConfig"
    if file_path.startswith("src/pages/"):
        return "../data/siteConfig"
    return None


def logo_extension(data_url: Optional[str]) -> str:
    match = _LOGO_MIME_RE.match(data_url or "")
    if not match:
        return "png"
    return "svg" if match.group(1) == "svg+xml" else match.group(1)


def files_to_generate(service_slugs: list[str]) -> list[str]:
    return SECTION_COMPONENT_FILES + [
        "src/pages/index.astro",
        "src/pages/contact.astro",
    ] + [f"src/pages/services/{slug}.astro" for slug in service_slugs]


def build_vercel_json(redirect_map: list[dict]) -> str:
    """Permanent redirects from old site paths; self-redirects are dropped."""
    redirects = [
        {"source": r["old_path"], "destination": r["new_path"], "statusCode": 301}
        for r in redirect_map
        if r.get("old_path") != r.get("new_path")
    ]
    return json.dumps({"redirects": redirects}, indent=2)


def build_section_map(service_slugs: list[str]) -> str:
    """Render src/data/sectionMap.ts for a site with the given services."""
    component_lines = "\n".join(f"  '{name}': '{path}'," for name, path in COMPONENT_SECTIONS.items())
    page_section_lines = "\n".join(f"  '{name}'," for name in sorted(PAGE_SECTIONS))
    page_file_lines = "\n".join(
        f"  '/services/{slug}/': 'src/pages/services/{slug}.astro'," for slug in service_slugs
    )
    if page_file_lines:
        page_file_lines += "\n"

    return f"""/**
 * Section-to-File Mapping
 * Maps data-section attribute values to their source file paths in the repo.
 * Used by the edit API to know which file to fetch and modify.
 */

/** Sections that are dedicated component files */
export const componentSections: Record<string, string> = {{
{component_lines}
}};

/** Sections that live inline inside page files */
const pageSections = new Set([
{page_section_lines}
]);

/** Page URL pathname → source file path */
const pageFileMap: Record<string, string> = {{
{page_file_lines}  '/contact/': 'src/pages/contact.astro',
}};

/**
 * Resolve a data-section value + current page URL to a source file path.
 * Returns null if the section can't be mapped.
 */
export function resolveFilePath(
  section: string,
  currentPage: string
): string | null {{
  if (componentSections[section]) {{
    return componentSections[section];
  }}
  if (pageSections.has(section)) {{
    const normalized = currentPage.endsWith('/') ? currentPage : currentPage + '/';
    return pageFileMap[normalized] || null;
  }}
  return null;
}}
"""


def _homepage(pages: list[dict]) -> Optional[dict]:
    for page in pages:
        if page.get("slug") == "index":
            return page
    return pages[0] if pages else None


def find_matching_scraped_page(pages: list[dict], file_path: str) -> Optional[dict]:
    """Pick the scraped page whose content should inform a generated file."""
    if "components/sections/" in file_path:
        return _homepage(pages)

    if file_path.endswith("index.astro") and "services" not in file_path:
        return _homepage(pages)

    if "contact" in file_path:
        return next((p for p in pages if "contact" in p.get("slug", "")), None)

    match = _SERVICE_FILE_RE.search(file_path)
    if match:
        service_slug = match.group(1)
        words = service_slug.replace("-", " ")
        return next(
            (
                p for p in pages
                if service_slug in p.get("slug", "") or words in (p.get("title") or "").lower()
            ),
            None,
        )
    return None
