"""Unresolved issue queries.

Functions:
    find_issues(client, resource_key, page_index)         -> Page
    page_count(total, page_size)                           -> int
    get_all_issues_for(connection, resource_key, progress) -> list[Issue]
    build_issue_report(resource_key, issues)               -> dict
"""

import logging
from datetime import datetime, timezone

from sonar_connector.client import SonarClient
from sonar_connector.connection import Connection
from sonar_connector.models import Issue, Page
from sonar_connector.progress import NullProgress, ProgressIndicator

logger = logging.getLogger(__name__)

_ISSUES_ENDPOINT = "/api/issues/search"

# Asks the server for its own maximum page size.
UNBOUNDED_PAGE_SIZE = -1


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def find_issues(client: SonarClient, resource_key: str, page_index: int | None = None) -> Page:
    """Fetch one page of unresolved issues below *resource_key*."""
    params = {
        "componentRoots": resource_key,
        "resolved":       "false",
        "ps":             UNBOUNDED_PAGE_SIZE,
    }
    if page_index is not None:
        params["p"] = page_index
    return Page.from_json(client.get(_ISSUES_ENDPOINT, params) or {})


def page_count(total: int, page_size: int) -> int:
    """Number of pages needed for *total* items, at least 1.

    A non-positive *page_size* cannot be divided by; it is treated as a
    single page, as is an empty result.
    """
    if page_size <= 0 or total <= 0:
        return 1
    return -(-total // page_size)


def get_all_issues_for(
    connection: Connection,
    resource_key: str,
    progress: ProgressIndicator | None = None,
) -> list[Issue]:
    """Return every unresolved issue of *resource_key*, in page order.

    Cancellation is checked before each page after the first; a cancelled
    download returns the issues of the pages already fetched.
    """
    progress = progress or NullProgress()
    client = connection.issue_client

    first = find_issues(client, resource_key)
    issues: list[Issue] = list(first.items)

    pages = first.pages
    if pages is None:
        pages = page_count(first.total, first.page_size)
    logger.debug("%s: %d issues over %d page(s)", resource_key, first.total, pages)

    for page_index in range(2, pages + 1):
        if progress.is_canceled():
            logger.info("Issue download for %s cancelled before page %d of %d",
                        resource_key, page_index, pages)
            break
        progress.set_text(f"{page_index} / {pages} pages downloaded")
        progress.set_fraction(page_index / pages)
        issues.extend(find_issues(client, resource_key, page_index).items)

    return issues


def build_issue_report(resource_key: str, issues: list[Issue]) -> dict:
    return {
        "report_type":  "unresolved_issues",
        "resource_key": resource_key,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "total":        len(issues),
        "issues":       issues,
    }
