"""Meeting id discovery for a single API key.

WHY: Fireflies lists transcripts in pages of at most 50. The aggregation
pipeline needs every meeting id an account can see before it can
deduplicate across accounts.

HOW: Requests pages with a fixed size and an increasing offset, starting
at 0, until a page comes back empty or shorter than the page size.

RULES:
- Ids are returned in request order
- Any client error aborts discovery and propagates (fail-fast); a partial
  id list would corrupt ownership assignment downstream
- A full final page costs one extra, empty request. Exhaustion is only
  inferred from a short page; the API has no total count to check against
- No retries
"""

from __future__ import annotations

import logging
from typing import Awaitable, List, Optional, Protocol

from fireflies_sdk.config import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)


class MeetingLister(Protocol):
    """The part of FirefliesClient the paginator depends on."""

    def list_transcript_ids(self, limit: int, skip: int) -> Awaitable[Optional[List[str]]]:
        ...


async def list_all_meeting_ids(
    client: MeetingLister,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[str]:
    """Collect every meeting id visible to the client's API key.

    Args:
        client: An entered FirefliesClient (or anything with list_transcript_ids).
        page_size: Ids requested per page.

    Returns:
        All meeting ids, in the order the API returned them.
    """
    if page_size < 1:
        raise ValueError("page_size must be >= 1, got {}".format(page_size))

    ids: List[str] = []
    skip = 0
    while True:
        try:
            page = await client.list_transcript_ids(limit=page_size, skip=skip)
        except Exception as e:
            logger.error("Meeting id discovery failed at offset %d: %s", skip, e)
            raise

        if page:
            ids.extend(page)
        if not page or len(page) < page_size:
            break
        skip += page_size

    logger.debug("Discovered %d meeting ids in %d page(s)", len(ids), skip // page_size + 1)
    return ids
