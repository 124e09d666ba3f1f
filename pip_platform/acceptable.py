"""Acceptance resolution for versioned legal/consent documents.

Two views of an acceptable are offered:

- ``PIPAcceptable`` is the end-user view. The backend embeds the user's
  latest acceptance and localizes content itself, so acceptance is a
  version-number comparison.
- ``PIPAdminAcceptable`` works from the raw version listing. It picks the
  newest ready version, matches content against ranked languages with a
  default-language fallback, and scans the paginated acceptance history.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from contracts.v1.schemas import (
    AcceptableContent,
    AcceptableItem,
    AcceptableVersion,
    AppUserAcceptable,
)

from .errors import NoMatchError, NoVersionError
from .once import AsyncOnce
from .ports import PrivateInformationProvider

if TYPE_CHECKING:
    from .admin_client import PIPAdminClient

logger = logging.getLogger(__name__)


def resolve_content(
    contents: list[AcceptableContent],
    languages: list[str],
    default_language: str,
) -> AcceptableContent:
    """Return the first variant matching ``languages`` then ``default_language``."""
    by_language: dict[str, AcceptableContent] = {}
    for item in contents:
        by_language.setdefault(item.language_code, item)

    for language in [*languages, default_language]:
        match = by_language.get(language)
        if match is not None:
            return match
    raise NoMatchError(
        "No acceptable content matches the languages supplied. "
        "Default content is presumably not configured."
    )


class PIPAcceptable:
    """An acceptable as the authenticated user sees it."""

    def __init__(self, acceptable_id: str, pip: PrivateInformationProvider, jwt: str):
        self.acceptable_id = acceptable_id
        self.pip = pip
        self.jwt = jwt
        self._acceptable: AsyncOnce[AppUserAcceptable] = AsyncOnce()

    async def acceptable(self, languages: list[str] | None = None) -> AppUserAcceptable:
        """Fetch once; ``languages`` only affects the first call."""
        return await self._acceptable.get_or_compute(
            lambda: self.pip.get_acceptable(self.acceptable_id, self.jwt, languages)
        )

    async def is_accepted(self) -> bool:
        acceptable = await self.acceptable()
        latest = acceptable.latest_acceptance
        if latest is None or isinstance(latest.version, str):
            return False
        return acceptable.latest_version.number == latest.version.number

    async def accept(self, content: AcceptableContent | None = None) -> None:
        acceptable = await self.acceptable()
        await self.pip.send_acceptance(acceptable, self.jwt, content)


class PIPAdminAcceptable:
    """An acceptable resolved from its version history by an admin client."""

    def __init__(self, acceptable_id: str, pip: PIPAdminClient, *, only_ready: bool = True):
        self.acceptable_id = acceptable_id
        self.pip = pip
        self.only_ready = only_ready
        self._item: AsyncOnce[AcceptableItem] = AsyncOnce()
        self._version: AsyncOnce[AcceptableVersion | None] = AsyncOnce()

    async def acceptable_item(self) -> AcceptableItem:
        return await self._item.get_or_compute(lambda: self.pip.get_acceptable_item(self.acceptable_id))

    async def acceptable(self) -> AcceptableVersion | None:
        """The selected version, or ``None`` when none applies yet."""
        return await self._version.get_or_compute(
            lambda: self.pip.get_acceptable(self.acceptable_id, self.only_ready)
        )

    async def is_accepted(self) -> bool:
        version = await self.acceptable()
        if version is None:
            return False
        return await self.pip.current_user_has_accepted(version)

    async def content(self, languages: list[str]) -> AcceptableContent:
        item = await self.acceptable_item()
        version = await self.acceptable()
        contents = version.content if version is not None else []
        logger.debug(
            "Resolving %s content for languages %s (default %s)",
            self.acceptable_id,
            languages,
            item.default_content_language_code,
        )
        return resolve_content(contents, languages, item.default_content_language_code)

    async def accept(self, content: AcceptableContent | None = None) -> None:
        version = await self.acceptable()
        if version is None:
            raise NoVersionError(f"Acceptable {self.acceptable_id} has no version to accept")
        await self.pip.send_acceptance(version, content)
