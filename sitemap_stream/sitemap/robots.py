"""
robots.txt helpers.
"""

import re
from typing import List

_SITEMAP_DIRECTIVE = re.compile(r"^sitemap:\s*(\S+)$", re.IGNORECASE)


def extract_sitemap_directives(robots_text: str) -> List[str]:
    """
    Extract the URLs of ``Sitemap:`` lines, in file order.

    Matching is case-insensitive; duplicates are kept and the URLs are
    not validated.
    """
    sitemaps = []
    for line in robots_text.splitlines():
        match = _SITEMAP_DIRECTIVE.match(line.strip())
        if match:
            sitemaps.append(match.group(1))
    return sitemaps
