# ABOUTME: Protocol interfaces for the pipeline's external collaborators
# ABOUTME: Shared exception hierarchy raised by the video, model and level adapters

from typing import Protocol

from level_scout.core.models import LevelRecord, SemanticExtraction, VideoMetadata


class LevelScoutError(Exception):
    """Base exception for level-scout adapter failures."""

    pass


class MetadataFetchError(LevelScoutError):
    """Raised when video metadata cannot be retrieved."""

    pass


class SemanticExtractionError(LevelScoutError):
    """Raised when the model call fails or returns a response that violates the schema."""

    pass


class AuthorityLookupError(LevelScoutError):
    """Raised on transport failures or unexpected responses from the level authority."""

    pass


class AuthorityPayloadError(AuthorityLookupError):
    """Raised when the level authority answers successfully with a body that is not a level.

    Repeating the request would return the same body, so lookups do not retry it.
    """

    pass


class MetadataFetcher(Protocol):
    """Resolves a video ID to its text metadata."""

    async def get_video_metadata(self, video_id: str) -> VideoMetadata | None:
        """Return metadata, or None when the video does not exist.

        Raises:
            MetadataFetchError: On transport or API failures
        """
        ...


class SemanticExtractor(Protocol):
    """Model-assisted extraction of a level ID and level names."""

    async def extract(self, title: str, description: str, channel_title: str) -> SemanticExtraction:
        """Return the model's structured answer for the given video text.

        Raises:
            SemanticExtractionError: On transport or schema failures
        """
        ...


class LevelAuthority(Protocol):
    """Validates level IDs and resolves level names."""

    async def get_level_with_retry(self, level_id: str, max_attempts: int | None = None) -> LevelRecord | None: ...

    async def search_with_fallback(self, names: list[str]) -> LevelRecord | None: ...
