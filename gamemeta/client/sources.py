from __future__ import annotations

import logging
from typing import Any, Protocol

from gamemeta.client.http import request_json
from gamemeta.config.settings import get_settings
from gamemeta.services.errors import ExternalSourceMiss, TransportFailure

logger = logging.getLogger("gamemeta.client.sources")

STEAMSPY_API_URL = "https://steamspy.com/api.php"


class MetadataSource(Protocol):
    """External site queried for a game's metadata.

    ``fetch`` returns the best match as a plain dict, raises
    ExternalSourceMiss when nothing matched and TransportFailure when the
    site could not be queried.
    """

    def fetch(self, appid: int, query: str) -> dict[str, Any]: ...


def clean_game_name_for_search(name: str) -> str:
    without_possessive = name.replace("'s", "").replace("’s", "")
    cleaned = "".join(
        char if not char.isascii() or char.isalnum() or char == " " else " "
        for char in without_possessive
    )
    return " ".join(cleaned.split())


class SteamSpyTagSource:
    """Community tags with vote counts from SteamSpy (roughly 1 request/second allowed)."""

    def __init__(self, base_url: str = STEAMSPY_API_URL, timeout: float | None = None) -> None:
        settings = get_settings()
        self._base_url = base_url
        self._timeout = timeout if timeout is not None else settings.http_timeout_secs
        self._user_agent = settings.user_agent

    def fetch(self, appid: int, query: str = "") -> dict[str, Any]:
        data = request_json(
            f"{self._base_url}?request=appdetails&appid={appid}",
            timeout=self._timeout,
            user_agent=self._user_agent,
        )
        if not isinstance(data, dict):
            raise TransportFailure("Unexpected SteamSpy response shape")

        raw_tags = data.get("tags")
        # SteamSpy answers an unknown appid with an empty list instead of a mapping
        if not isinstance(raw_tags, dict) or not raw_tags:
            raise ExternalSourceMiss(f"SteamSpy has no tags for appid {appid}")

        tags = [
            (str(tag_name), max(int(vote_count), 0))
            for tag_name, vote_count in raw_tags.items()
            if isinstance(vote_count, (int, float))
        ]
        tags.sort(key=lambda item: (-item[1], item[0]))
        logger.debug("SteamSpy returned %d tags for appid=%s", len(tags), appid)
        return {"tags": tags}
