# ABOUTME: GDBrowser API client for validating level IDs and searching levels by name
# ABOUTME: Tenacity-driven exponential backoff for lookups; every request goes through the GDBrowser limiter

import asyncio
from collections.abc import Awaitable, Callable
from urllib.parse import quote

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from level_scout.config import get_config
from level_scout.core.models import LevelRecord
from level_scout.extraction.base import AuthorityLookupError, AuthorityPayloadError
from level_scout.extraction.names import expand_name_variations
from level_scout.utils.logging import get_logger, log_api_call
from level_scout.utils.rate_limit import RateLimiter

# GDBrowser answers some misses with a 200 and a literal "-1" body
NOT_FOUND_BODY = "-1"


def _parse_level(data: object, key: str) -> LevelRecord:
    try:
        return LevelRecord.model_validate(data)
    except ValidationError as e:
        raise AuthorityPayloadError(f"Unexpected level payload for {key}: {e}") from e


class GDBrowserClient:
    """Client for the GDBrowser level and search endpoints."""

    def __init__(
        self,
        limiter: RateLimiter,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        retry_attempts: int | None = None,
        retry_base_delay: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the client.

        Args:
            limiter: Rate limiter for the GDBrowser dependency
            client: HTTP client (optional, created from config when omitted)
            base_url: API base URL (defaults to config.gdbrowser_base_url)
            retry_attempts: Default attempts for get_level_with_retry
            retry_base_delay: First backoff delay in seconds, doubled per attempt
            sleep: Awaitable sleep used between retries
        """
        config = get_config()
        self.limiter = limiter
        self.base_url = (base_url or config.gdbrowser_base_url).rstrip("/")
        self.http_client = client or httpx.AsyncClient(timeout=config.request_timeout)
        self.retry_attempts = retry_attempts or config.retry_attempts
        self.retry_base_delay = retry_base_delay if retry_base_delay is not None else config.retry_base_delay
        self._sleep = sleep
        self.logger = get_logger(__name__)

    async def _get_json(self, path: str) -> object | None:
        """GET a path under the base URL; None for a not-found answer."""
        try:
            async with self.limiter.admit():
                response = await self.http_client.get(f"{self.base_url}{path}")
        except httpx.HTTPError as e:
            raise AuthorityLookupError(f"GDBrowser request failed for {path}: {e}") from e

        if response.status_code == 404 or response.text.strip() == NOT_FOUND_BODY:
            return None
        if not response.is_success:
            raise AuthorityLookupError(f"GDBrowser returned HTTP {response.status_code} for {path}")

        try:
            return response.json()
        except ValueError as e:
            raise AuthorityLookupError(f"GDBrowser returned invalid JSON for {path}") from e

    @log_api_call("gdbrowser.level")
    async def get_level(self, level_id: str) -> LevelRecord | None:
        """Fetch a level by ID.

        Returns:
            The level, or None if GDBrowser does not know the ID

        Raises:
            AuthorityLookupError: On network errors or unexpected responses
        """
        data = await self._get_json(f"/level/{quote(level_id, safe='')}")
        if data is None:
            self.logger.debug("Level not found", level_id=level_id)
            return None
        return _parse_level(data, level_id)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        self.logger.warning(
            "Retrying level fetch",
            level_id=retry_state.args[0] if retry_state.args else None,
            attempt=retry_state.attempt_number,
            sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(exception),
        )

    async def get_level_with_retry(self, level_id: str, max_attempts: int | None = None) -> LevelRecord | None:
        """Fetch a level, retrying transient failures with exponential backoff.

        A clean not-found is returned immediately, and so is a malformed level
        payload. When every attempt fails the result is None, the same as a
        not-found.
        """
        attempts = max_attempts or self.retry_attempts
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self.retry_base_delay, exp_base=2),
            retry=retry_if_exception_type(AuthorityLookupError) & retry_if_not_exception_type(AuthorityPayloadError),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            return await retrying(self.get_level, level_id)
        except AuthorityLookupError as e:
            self.logger.error(
                "Failed to fetch level after retries", level_id=level_id, attempts=attempts, error=str(e)
            )
            return None

    @log_api_call("gdbrowser.search")
    async def search_level(self, level_name: str) -> LevelRecord | None:
        """Search levels by name and return the most relevant match.

        Raises:
            AuthorityLookupError: On network errors or unexpected responses
        """
        data = await self._get_json(f"/search/{quote(level_name, safe='')}")
        if not data or not isinstance(data, list):
            self.logger.debug("No levels found for name", name=level_name)
            return None

        level = _parse_level(data[0], level_name)
        self.logger.debug("Search hit", name=level_name, level_id=level.id, level_name=level.name)
        return level

    async def _search_each(self, names: list[str], kind: str) -> LevelRecord | None:
        for name in names:
            try:
                level = await self.search_level(name)
            except AuthorityLookupError as e:
                self.logger.warning("Level search failed", name=name, kind=kind, error=str(e))
                continue
            if level:
                self.logger.info("Found level by name", name=name, kind=kind, level_id=level.id, level_name=level.name)
                return level
        return None

    async def search_with_fallback(self, names: list[str]) -> LevelRecord | None:
        """Search each name, then each generated variation not already tried; first hit wins."""
        level = await self._search_each(names, kind="name")
        if level:
            return level

        variations = expand_name_variations(names)
        self.logger.debug("Trying name variations", names=names, variations=variations)
        level = await self._search_each(variations, kind="variation")
        if level is None:
            self.logger.debug(
                "No levels found by name", names_tried=len(names), variations_tried=len(variations)
            )
        return level

    async def close(self) -> None:
        await self.http_client.aclose()
