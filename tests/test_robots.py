from scraper.robots import BOT_NAME, is_blocked_by_robots, parse_robots_txt
from scraper.sitemap import parse_sitemap_xml


# --- robots.txt ---

def test_blocked_by_prefix():
    assert is_blocked_by_robots("/admin/settings", ["/admin/"]) is True


def test_not_blocked():
    assert is_blocked_by_robots("/about", ["/admin/"]) is False


def test_no_glob_semantics():
    assert is_blocked_by_robots("/private/page", ["/*/page"]) is False


def test_only_wildcard_and_own_agent_groups_apply():
    robots = f"""
User-agent: Googlebot
Disallow: /google-only/

User-agent: *
Disallow: /admin/
Disallow:

User-agent: {BOT_NAME}
Disallow: /drafts
"""
    assert parse_robots_txt(robots) == ["/admin/", "/drafts"]


def test_agent_match_is_case_insensitive():
    robots = "User-Agent: SiteBuilderBot/1.0\nDISALLOW: /staging\n"
    assert parse_robots_txt(robots) == ["/staging"]


def test_allow_and_sitemap_lines_ignored():
    robots = "User-agent: *\nAllow: /public\nSitemap: https://acme.com/sitemap.xml\nDisallow: /tmp\n"
    assert parse_robots_txt(robots) == ["/tmp"]


def test_empty_robots():
    assert parse_robots_txt("") == []


# --- sitemap.xml ---

SITEMAP = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://acme.com/</loc></url>
  <url><loc> https://acme.com/services/ </loc><lastmod>2024-01-01</lastmod></url>
  <url><loc>https://elsewhere.com/page</loc></url>
  <url><loc></loc></url>
</urlset>
"""


def test_sitemap_locs_normalized_and_filtered():
    assert parse_sitemap_xml(SITEMAP, "https://acme.com") == [
        "https://acme.com/",
        "https://acme.com/services",
    ]


def test_sitemap_without_namespace():
    xml = "<urlset><url><loc>https://acme.com/contact</loc></url></urlset>"
    assert parse_sitemap_xml(xml, "https://acme.com") == ["https://acme.com/contact"]


def test_sitemap_index_entries_are_not_urls():
    xml = "<sitemapindex><sitemap><loc>https://acme.com/sitemap-2.xml</loc></sitemap></sitemapindex>"
    assert parse_sitemap_xml(xml, "https://acme.com") == []


def test_garbage_sitemap_yields_nothing():
    assert parse_sitemap_xml("", "https://acme.com") == []
    assert parse_sitemap_xml("<html><body>Not found</body></html>", "https://acme.com") == []
