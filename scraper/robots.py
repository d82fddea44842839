import re

# the agent token we answer to in robots.txt, besides "*"
BOT_NAME = "sitebuilderbot/1.0"


def parse_robots_txt(robots_txt: str) -> list[str]:
    """
    Collect Disallow path prefixes that apply to us.

    Only groups under "User-agent: *" or our own agent name count. Allow,
    wildcards and Sitemap: lines are not interpreted.
    """
    disallowed: list[str] = []
    relevant = False

    for line in robots_txt.splitlines():
        stripped = line.strip()
        lowered = stripped.lower()
        if lowered.startswith("user-agent:"):
            agent = lowered[len("user-agent:"):].strip()
            relevant = agent in ("*", BOT_NAME)
        elif relevant and lowered.startswith("disallow:"):
            path = re.sub(r"^disallow:\s*", "", stripped, flags=re.IGNORECASE).strip()
            if path:
                disallowed.append(path)

    return disallowed


def is_blocked_by_robots(url_path: str, disallowed: list[str]) -> bool:
    """Literal prefix match, no glob semantics."""
    return any(url_path.startswith(rule) for rule in disallowed)
