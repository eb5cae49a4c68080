"""Rollbar link matching.

Item links look like https://rollbar.com/{org}/{project}/items/{counter}/ and
project URLs like https://rollbar.com/{org}/{project}/. Both yield the
"org/project" identifier lower-cased, which is how project tokens are keyed.
Project URLs must be on the configured Rollbar web host.
"""

import re
from functools import lru_cache
from typing import NamedTuple, Optional, Pattern
from urllib.parse import urlsplit

from ..config import get_settings

_SEGMENT = r"[a-zA-Z0-9_\-\.]+"

ITEM_LINK_REGEX = re.compile(rf"({_SEGMENT}/{_SEGMENT})/items/(\d+)/?")

class ItemLink(NamedTuple):
    project: str
    counter: str

@lru_cache()
def project_url_regex(web_url: str) -> Pattern[str]:
    host = urlsplit(web_url).netloc or web_url.strip("/")
    return re.compile(rf"^https?://{re.escape(host)}/({_SEGMENT}/{_SEGMENT})(?:/.*)?$", re.IGNORECASE)

def match_item_link(url: str) -> Optional[ItemLink]:
    """
    Extract (project, counter) from a Rollbar item link.
    The counter is kept as the matched digit string.
    """
    match = ITEM_LINK_REGEX.search(url)
    if not match:
        return None
    return ItemLink(project=match.group(1).lower(), counter=match.group(2))

def match_project_url(url: str, web_url: Optional[str] = None) -> Optional[str]:
    """Normalized "org/project" for a Rollbar project URL, else None."""
    pattern = project_url_regex(web_url or get_settings().ROLLBAR_WEB_URL)
    # Slack may deliver links wrapped in angle brackets.
    match = pattern.match(url.strip().strip("<>"))
    if not match:
        return None
    return match.group(1).lower()

def project_url(web_url: str, project: str) -> str:
    return f"{web_url.rstrip('/')}/{project}/"
