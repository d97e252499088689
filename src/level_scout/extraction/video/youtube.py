# ABOUTME: YouTube Data API v3 client that resolves a video ID to its text metadata
# ABOUTME: Every request is admitted through the YouTube rate limiter

import httpx

from level_scout.config import get_config
from level_scout.core.models import VideoMetadata
from level_scout.extraction.base import MetadataFetchError
from level_scout.utils.logging import get_logger, log_api_call
from level_scout.utils.rate_limit import RateLimiter


class YouTubeMetadataFetcher:
    """Fetches title, description, channel and tags for a video."""

    def __init__(
        self,
        limiter: RateLimiter,
        client: httpx.AsyncClient | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
    ):
        """Initialize the fetcher.

        Args:
            limiter: Rate limiter for the YouTube dependency
            client: HTTP client (optional, created from config when omitted)
            api_key: API key (defaults to config.youtube_api_key)
            base_url: API base URL (defaults to config.youtube_base_url)
        """
        config = get_config()
        self.limiter = limiter
        self.api_key = api_key if api_key is not None else config.youtube_api_key
        self.base_url = (base_url or config.youtube_base_url).rstrip("/")
        self.http_client = client or httpx.AsyncClient(timeout=config.request_timeout)
        self.logger = get_logger(__name__)

    async def get_video_metadata(self, video_id: str) -> VideoMetadata | None:
        """Fetch snippet metadata for a video.

        Returns:
            VideoMetadata, or None if YouTube has no such video

        Raises:
            MetadataFetchError: On missing credentials, transport or API failures
        """
        async with self.limiter.admit():
            return await self._fetch_snippet(video_id)

    @log_api_call("youtube")
    async def _fetch_snippet(self, video_id: str) -> VideoMetadata | None:
        if not self.api_key:
            raise MetadataFetchError("YouTube API key not configured - set LEVEL_SCOUT_YOUTUBE_API_KEY")

        try:
            response = await self.http_client.get(
                f"{self.base_url}/videos",
                params={"part": "snippet", "id": video_id, "key": self.api_key},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise MetadataFetchError(f"YouTube API error for video {video_id}: {e}") from e

        items = payload.get("items") or []
        if not items:
            self.logger.warning("Video not found", video_id=video_id)
            return None

        snippet = items[0].get("snippet") or {}
        return VideoMetadata(
            title=snippet.get("title") or "",
            description=snippet.get("description") or "",
            channel_title=snippet.get("channelTitle") or "",
            tags=tuple(snippet.get("tags") or ()),
        )

    async def close(self) -> None:
        await self.http_client.aclose()
