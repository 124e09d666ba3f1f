"""Helpers for walking ``{results, next}`` paginated collections."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from contracts.v1.schemas import Page

logger = logging.getLogger(__name__)

FetchPage = Callable[[str], Awaitable[Any]]


async def iter_pages(fetch_page: FetchPage, url: str) -> AsyncIterator[Page]:
    """Yield pages starting at ``url`` until the backend omits ``next``.

    A ``next`` link that points back at an already fetched page ends the walk.
    """
    seen: set[str] = set()
    next_url: str | None = url
    while next_url:
        seen.add(next_url)
        page = Page.model_validate(await fetch_page(next_url))
        yield page
        next_url = page.next
        if next_url in seen:
            logger.warning("Pagination link %s repeats an earlier page; stopping", next_url)
            return


async def any_result(
    fetch_page: FetchPage,
    url: str,
    predicate: Callable[[dict[str, Any]], bool],
) -> bool:
    """Return True as soon as any result on any page satisfies ``predicate``."""
    async for page in iter_pages(fetch_page, url):
        if any(predicate(result) for result in page.results):
            return True
    return False
