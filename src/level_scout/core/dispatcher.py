# ABOUTME: Handles an inbound chat message: finds video links and runs extractions concurrently
# ABOUTME: Caps the number of videos per message; extra links are dropped, not queued

import asyncio
from dataclasses import dataclass

from level_scout.core.models import ExtractionResult
from level_scout.core.pipeline import LevelExtractionPipeline
from level_scout.extraction.video.parser import contains_youtube_url, extract_video_ids
from level_scout.utils.logging import get_logger


@dataclass(frozen=True)
class VideoOutcome:
    """Extraction result for one video referenced in a message."""

    video_id: str
    result: ExtractionResult


class MessageDispatcher:
    """Turns message text into extraction results, one concurrent run per video."""

    def __init__(self, pipeline: LevelExtractionPipeline, max_videos_per_message: int = 3):
        self.pipeline = pipeline
        self.max_videos_per_message = max_videos_per_message
        self.logger = get_logger(__name__)

    async def handle_message(self, content: str, author: str | None = None) -> list[VideoOutcome]:
        """Process every (capped) video link in a message.

        Results come back in the order the links appear in the message.
        """
        if not contains_youtube_url(content):
            return []

        video_ids = extract_video_ids(content)
        self.logger.info("Processing YouTube links", count=len(video_ids), author=author)

        to_process = video_ids[: self.max_videos_per_message]
        skipped = len(video_ids) - len(to_process)
        if skipped > 0:
            self.logger.debug("Skipped videos (limit reached)", skipped=skipped, limit=self.max_videos_per_message)

        results = await asyncio.gather(*(self.pipeline.extract_level(video_id) for video_id in to_process))
        return [VideoOutcome(video_id=video_id, result=result) for video_id, result in zip(to_process, results)]
