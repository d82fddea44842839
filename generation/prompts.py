"""Prompt text for file generation, section editing and the creative-brief intake."""
import json
from typing import Optional

from .files import site_config_import_path

GENERATE_SYSTEM_PROMPT = """You are a web developer customizing an Astro website template for a new client.
You will receive a template file and client-specific data.
Return ONLY the complete file content. No markdown fences, no explanation, no preamble.

Rules:
- Keep all import statements from the template
- Import siteConfig only from the exact module path given in the request
- Keep BaseLayout wrapper and data-section attributes
- Keep CSS custom property usage (var(--color-primary) etc.)
- Use siteConfig references for phone, email, address, services
- Replace ALL placeholder text with real client content
- Reference scraped image URLs where appropriate
- Do not add external dependencies or npm packages
- Keep code clean, well-formatted, and production-ready"""

EDIT_SYSTEM_PROMPT = """You are an expert Astro and Tailwind CSS developer working as a website editor. You will receive the source code of an Astro component and a user's request to modify it.

Rules:
- Return the COMPLETE modified component file, not just the changes
- Maintain the existing data-section attribute; never remove it
- If data-global="true" exists, maintain it
- Keep the same Tailwind CSS custom property approach (var(--color-primary) etc.)
- Do not add external dependencies or npm packages
- Do not add client-side JavaScript unless specifically requested
- Keep the code clean, well-formatted, and production-ready
- If the user provides a reference URL, use it as visual/structural inspiration but write original code
- If the user provides a reference image, interpret the design and implement it in Astro/Tailwind

Respond in this JSON format:
{
  "explanation": "Brief description of what you changed and why",
  "code": "The complete modified component file content"
}

Only respond with valid JSON. No markdown, no code fences."""

INTAKE_SYSTEM_PROMPT = """You are a creative director at a web design agency helping build a client brief. You're having a conversation to gather everything needed to build their website. Be conversational and enthusiastic.

When the conversation starts, you'll receive the structured fields (business name, domain, current website URL if provided) as a [Client info: ...] block in the user's first message.

Your job:
1. Acknowledge what you know so far
2. If a current website URL was provided, note that it will be scraped for content later
3. Ask about design preferences:
   - What vibe/mood? (modern, classic, bold, minimal, etc.)
   - Color preferences? Any brand colors to keep or change?
   - Sites they admire or want to look like?
   - What feeling should visitors get?
4. Ask about content priorities:
   - What's most important to highlight?
   - Any specific services or offerings to feature?
   - Testimonials or reviews they want included?
   - Calls to action: what should visitors do?
5. Ask about anything else:
   - Photos they want to use?
   - Specific pages beyond the standard set?
   - Any features they need (booking, forms, etc.)?

Don't ask everything at once. Have a natural conversation and ask 2-3 questions at a time based on what they've shared so far.

When URLs are pasted, acknowledge them as reference sites and note what style elements you'd draw from them.
When images are shared, describe what you see and incorporate the visual direction into the brief.

RESPONSE FORMAT: always respond with valid JSON, no markdown code fences.

For regular conversation:
{
  "action": "continue",
  "reply": "Your conversational response here"
}

When the user's message contains [FINALIZE_BRIEF], compile everything discussed into a structured creative brief:
{
  "action": "brief_complete",
  "reply": "A conversational summary of the brief for the user to read",
  "creativeBrief": {
    "business_type": "Type of business",
    "design_direction": "Overall design direction and mood",
    "color_preferences": "Color palette notes",
    "target_audience": "Who the site is for",
    "content_priorities": ["Priority 1", "Priority 2"],
    "services_to_feature": ["Service 1", "Service 2"],
    "reference_sites": ["site1.com", "site2.com"],
    "calls_to_action": ["CTA 1", "CTA 2"],
    "special_features": ["Feature 1", "Feature 2"],
    "pages": ["Home", "Services", "About", "Contact"],
    "notes": "Any additional context or requirements"
  }
}

Only include fields in creativeBrief that were actually discussed. Omit fields that weren't covered.
Always respond with valid JSON only. No markdown, no code fences, no extra text."""

SERVICE_ICONS = ("wrench", "chart", "shield", "home", "star", "truck", "leaf", "droplet", "hammer", "sparkles")

_FILE_INSTRUCTIONS = {
    "Hero.astro": (
        "Write a compelling headline and subtext. Use the scraped H1 and homepage content as inspiration. "
        "Include strong CTA buttons linking to /contact/ and /services/{first-service-slug}/."
    ),
    "Navigation.astro": (
        "Update navigation links to match the services in siteConfig. Include Home, Services dropdown "
        "(one link per service), About, and Contact links."
    ),
    "Services.astro": (
        "Show all services from siteConfig with their titles, descriptions, and icons. "
        "Each service card should link to /services/{slug}/."
    ),
    "About.astro": (
        "Write authentic about section content based on the scraped about page or homepage content. "
        "Highlight the business's experience and values."
    ),
    "Testimonials.astro": (
        "Display the scraped testimonials if provided. If none exist, create 3 realistic testimonials "
        "appropriate for this business type."
    ),
    "Footer.astro": (
        "Include all contact info from siteConfig, social links, service quick links, and a copyright line."
    ),
    "contact.astro": (
        "Include the contact form, business address, phone, email, and hours of operation from scraped data if available."
    ),
}


def _business_type(brief: dict) -> str:
    return brief.get("business_type") or "local business"


def site_config_prompt(
    client_name: str,
    template: str,
    brief: dict,
    scraped_global: dict,
    homepage_text: str,
    repo_name: str,
    logo_ext: Optional[str] = None,
) -> str:
    phones = scraped_global.get("phone_numbers") or []
    emails = scraped_global.get("email_addresses") or []
    socials = scraped_global.get("social_links") or []
    services = brief.get("services_to_feature") or []

    lines = [
        f'I need you to customize this Astro siteConfig.ts template for a {_business_type(brief)} called "{client_name}".',
        "",
        "TEMPLATE FILE (src/data/siteConfig.ts):",
        "```typescript",
        template,
        "```",
        "",
        "CLIENT DATA:",
        f"- Business name: {client_name}",
        f"- Business type: {_business_type(brief)}",
        f"- Tagline/design direction: {brief.get('design_direction') or 'professional and modern'}",
        f"- Phone: {phones[0] if phones else '(555) 000-0000'}",
        f"- Email: {emails[0] if emails else f'info@{repo_name}.com'}",
        f"- Physical address: {scraped_global.get('physical_address') or 'Not available'}",
        f"- Social links: {', '.join(socials) if socials else 'none found'}",
        f"- Services to feature: {json.dumps(services)}",
        f"- Key CTAs: {json.dumps(brief.get('calls_to_action') or [])}",
    ]
    if logo_ext:
        lines.append(
            f'- Logo file: /logo.{logo_ext} (already committed to public/, add logoPath: "/logo.{logo_ext}" to the config)'
        )
    lines += [
        "",
        "SCRAPED HOMEPAGE CONTENT (use this to determine correct city/state/location):",
        homepage_text,
        "",
        "IMPORTANT:",
        "- Use the SCRAPED content to determine the correct city, state, and location. Do NOT keep the template defaults.",
        "- The address object must reflect the client's actual location from the scraped data, not the template placeholder.",
    ]
    if services:
        lines += [
            f"- Create one service entry for each of these services: {', '.join(services)}.",
            '  Each service needs a slug (kebab-case, e.g. "pressure-washing"), a title, a short description, and an icon.',
            "  Available icons: " + ", ".join(f'"{icon}"' for icon in SERVICE_ICONS) + ".",
        ]
    lines += [
        "",
        "Customize this siteConfig with real client data. Keep the exact same TypeScript structure and export.",
        "Return the complete file.",
    ]
    return "\n".join(lines)


def theme_css_prompt(client_name: str, template: str, brief: dict) -> str:
    return f"""I need you to customize this CSS theme file for a {_business_type(brief)} called "{client_name}".

TEMPLATE FILE (src/styles/theme.css):
```css
{template}
```

CLIENT PREFERENCES:
- Color preferences: {brief.get('color_preferences') or 'professional, modern colors appropriate for the business type'}
- Design direction: {brief.get('design_direction') or 'clean and professional'}
- Business type: {_business_type(brief)}

Update the CSS custom property values in the :root block to match the client's brand.
Keep the @theme block structure identical. Only change the color values in :root.
Return the complete file."""


def file_instructions(file_path: str, brief: dict) -> str:
    """Extra guidance for a specific template file; empty when there is none."""
    for suffix, text in _FILE_INSTRUCTIONS.items():
        if suffix in file_path:
            return f"\nINSTRUCTIONS: {text}"

    if "Stats.astro" in file_path:
        return (
            f"\nINSTRUCTIONS: Create realistic statistics relevant to a {_business_type(brief)}. "
            "Use numbers that feel authentic (years in business, customers served, etc.)."
        )
    if "FAQ.astro" in file_path:
        return (
            f"\nINSTRUCTIONS: Create 5-6 relevant FAQs for a {_business_type(brief)}. "
            "Use real business details from siteConfig."
        )
    if "services/" in file_path and file_path.endswith(".astro"):
        slug = file_path.rsplit("services/", 1)[1][: -len(".astro")]
        return (
            f'\nINSTRUCTIONS: This is a detail page for the "{slug.replace("-", " ")}" service. '
            "Write detailed content including: overview, key features/benefits, process steps, FAQ, and a CTA. "
            f'Reference the service from siteConfig by its slug "{slug}".'
        )
    return ""


def _testimonial_line(item) -> str:
    if isinstance(item, dict):
        author = item.get("author")
        return f'- "{item.get("text", "")}"' + (f" ({author})" if author else "")
    return f'- "{item}"'


def page_prompt(
    client_name: str,
    file_path: str,
    template: str,
    site_config_source: str,
    brief: dict,
    matched_page: Optional[dict] = None,
    testimonials: Optional[list] = None,
    preserve_meta: bool = False,
) -> str:
    parts = [
        f'I need you to customize this template file for a {_business_type(brief)} called "{client_name}".',
        "",
        f"TEMPLATE FILE ({file_path}):",
        "```",
        template,
        "```",
        "",
        "SITE CONFIG (already generated, reference these values via import):",
        "```typescript",
        site_config_source,
        "```",
    ]

    import_path = site_config_import_path(file_path)
    if import_path:
        parts += [
            "",
            f"Import siteConfig with exactly: import {{ siteConfig }} from '{import_path}';",
            "Do not import it from any other path.",
        ]

    if matched_page:
        headings = ", ".join(f"H{h['level']}: {h['text']}" for h in matched_page.get("headings") or []) or "N/A"
        images = ", ".join(f"{img['src']} ({img.get('alt', '')})" for img in matched_page.get("images") or []) or "none"
        parts += [
            "",
            "EXISTING WEBSITE CONTENT (scraped from their current site):",
            f"- Page title: {matched_page.get('title') or 'N/A'}",
            f"- Meta description: {matched_page.get('meta_description') or 'N/A'}",
            f"- Headings: {headings}",
            f"- Content: {(matched_page.get('body_text') or '')[:1500]}",
            f"- Images: {images}",
        ]

    if "Testimonials" in file_path and testimonials:
        parts += ["", "SCRAPED TESTIMONIALS:"] + [_testimonial_line(t) for t in testimonials]

    parts += [
        "",
        "CREATIVE BRIEF:",
        f"- Design direction: {brief.get('design_direction') or 'professional and modern'}",
        f"- Target audience: {brief.get('target_audience') or 'general audience'}",
        f"- Key CTAs: {json.dumps(brief.get('calls_to_action') or [])}",
        f"- Special features: {json.dumps(brief.get('special_features') or [])}",
    ]

    if preserve_meta and matched_page and (matched_page.get("title") or matched_page.get("meta_description")):
        parts += ["", "IMPORTANT: Preserve these exact SEO meta values:"]
        if matched_page.get("title"):
            parts.append(f'- Meta title: "{matched_page["title"]}"')
        if matched_page.get("meta_description"):
            parts.append(f'- Meta description: "{matched_page["meta_description"]}"')

    prompt = "\n".join(parts)
    prompt += file_instructions(file_path, brief)
    prompt += "\n\nCustomize this template with real client content. Return the complete file."
    return prompt


def _reference_lines(reference_url: Optional[str], has_image: bool) -> str:
    text = ""
    if reference_url:
        text += f"\n\nReference website for inspiration: {reference_url}"
    if has_image:
        text += "\n\nA reference image has been provided. Use it as design guidance."
    return text


def new_page_prompt(message: str, reference_url: Optional[str] = None, has_image: bool = False) -> str:
    prompt = f"The user wants to create a new page for an Astro website using Tailwind CSS.\n\nThe user wants: {message}"
    prompt += _reference_lines(reference_url, has_image)
    prompt += (
        "\n\nGenerate a complete Astro page file. Use the same patterns as other pages in the project: "
        "import BaseLayout, use SectionWrapper for sections, include data-section attributes on each section, "
        "use Tailwind CSS utilities with the project's CSS custom properties (var(--color-primary), etc.)."
    )
    return prompt


def edit_prompt(
    action: str,
    section: str,
    original_code: str,
    message: str,
    reference_url: Optional[str] = None,
    has_image: bool = False,
    is_global: bool = False,
) -> str:
    prompt = (
        f'Here is the current component code for the "{section}" section:\n\n'
        f"```astro\n{original_code}\n```\n\nThe user wants: {message}"
    )
    prompt += _reference_lines(reference_url, has_image)
    if action == "replace":
        prompt += (
            "\n\nBuild a completely new version of this section. Return the complete new file. "
            "Keep the same data-section attribute."
        )
    else:
        prompt += "\n\nModify the component to match the user's request. Return the complete modified file."

    if is_global:
        prompt += (
            "\n\nIMPORTANT: This is a GLOBAL component (navigation or footer) that appears on every page. "
            'Changes here will affect all pages site-wide. Ensure data-global="true" is preserved.'
        )
    return prompt
