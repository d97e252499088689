# ABOUTME: Staged level extraction pipeline: pattern matching, model analysis, then name search
# ABOUTME: Each stage reports a hit or a miss; only missing video metadata ends a run early

from dataclasses import dataclass
from enum import Enum

import httpx

from level_scout.config import Config, get_config
from level_scout.core.models import (
    ExtractionFailure,
    ExtractionResult,
    ExtractionStage,
    ExtractionSuccess,
    FailureKind,
    LevelRecord,
    SemanticExtraction,
    VideoMetadata,
)
from level_scout.extraction.analysis.semantic import SemanticLevelExtractor, build_language_model
from level_scout.extraction.base import LevelAuthority, MetadataFetcher, SemanticExtractor
from level_scout.extraction.patterns import extract_potential_level_ids
from level_scout.extraction.video.youtube import YouTubeMetadataFetcher
from level_scout.services.gdbrowser import GDBrowserClient
from level_scout.utils.logging import get_logger
from level_scout.utils.rate_limit import GDBROWSER, OPENAI, YOUTUBE, RateLimiterRegistry


class RunState(str, Enum):
    """Progress of a single extraction run."""

    PENDING = "pending"
    FETCHING_METADATA = "fetching_metadata"
    PATTERN_STAGE = "pattern_stage"
    SEMANTIC_STAGE = "semantic_stage"
    NAME_SEARCH_STAGE = "name_search_stage"
    DONE = "done"


@dataclass(frozen=True)
class StageHit:
    """A stage validated a level."""

    level_id: str
    level: LevelRecord


@dataclass(frozen=True)
class StageMiss:
    """A stage finished without a validated level."""

    reason: str


StageOutcome = StageHit | StageMiss


class ExtractionRun:
    """One extraction for one video. Single use: ``run()`` may be awaited once."""

    def __init__(self, pipeline: "LevelExtractionPipeline", video_id: str):
        self.pipeline = pipeline
        self.video_id = video_id
        self.state = RunState.PENDING
        self.tried_ids: set[str] = set()
        self.rejected_ids: set[str] = set()
        self.semantic: SemanticExtraction | None = None
        self.result: ExtractionResult | None = None
        self.logger = get_logger(__name__).bind(video_id=video_id)

    async def run(self) -> ExtractionResult:
        """Drive the run to a terminal result. Never raises for dependency failures."""
        if self.state != RunState.PENDING:
            raise RuntimeError(f"Extraction run for {self.video_id} has already been started")

        self.logger.info("Starting extraction")

        self.state = RunState.FETCHING_METADATA
        metadata = await self._fetch_metadata()
        if metadata is None:
            return self._finish(ExtractionFailure(kind=FailureKind.VIDEO_NOT_FOUND))

        self.state = RunState.PATTERN_STAGE
        outcome = await self._pattern_stage(metadata)
        if isinstance(outcome, StageHit):
            return self._finish(
                ExtractionSuccess(
                    level_id=outcome.level_id, level=outcome.level, stage=ExtractionStage.PATTERN, metadata=metadata
                )
            )
        self._note_miss(outcome)

        self.state = RunState.SEMANTIC_STAGE
        outcome = await self._semantic_stage(metadata)
        if isinstance(outcome, StageHit) and self.semantic is not None:
            return self._finish(
                ExtractionSuccess(
                    level_id=outcome.level_id,
                    level=outcome.level,
                    stage=ExtractionStage.SEMANTIC,
                    metadata=metadata,
                    confidence=self.semantic.confidence,
                    reasoning=self.semantic.reasoning,
                )
            )
        self._note_miss(outcome)

        self.state = RunState.NAME_SEARCH_STAGE
        outcome = await self._name_search_stage()
        if isinstance(outcome, StageHit) and self.semantic is not None:
            return self._finish(
                ExtractionSuccess(
                    level_id=outcome.level_id,
                    level=outcome.level,
                    stage=ExtractionStage.NAME_SEARCH,
                    metadata=metadata,
                    confidence=self.semantic.confidence,
                    reasoning=self.semantic.reasoning,
                    searched_names=self.semantic.level_names,
                )
            )
        self._note_miss(outcome)

        self.logger.info("No valid level ID found")
        return self._finish(ExtractionFailure(kind=FailureKind.NO_LEVEL_ID_FOUND, metadata=metadata))

    def _note_miss(self, outcome: StageOutcome) -> None:
        if isinstance(outcome, StageMiss):
            self.logger.debug("Stage found nothing", stage=self.state.value, reason=outcome.reason)

    def _finish(self, result: ExtractionResult) -> ExtractionResult:
        self.state = RunState.DONE
        self.result = result
        if isinstance(result, ExtractionSuccess):
            self.logger.info(
                "Extraction succeeded", level_id=result.level_id, level_name=result.level.name, stage=result.stage.value
            )
        return result

    async def _fetch_metadata(self) -> VideoMetadata | None:
        try:
            metadata = await self.pipeline.metadata_fetcher.get_video_metadata(self.video_id)
        except Exception as e:
            self.logger.error("Failed to fetch video metadata", error=str(e), error_type=type(e).__name__)
            return None
        if metadata is None:
            self.logger.warning("Video metadata unavailable")
        return metadata

    async def _validate(self, level_id: str, stage: ExtractionStage) -> LevelRecord | None:
        self.tried_ids.add(level_id)
        try:
            level = await self.pipeline.authority.get_level_with_retry(level_id)
        except Exception as e:
            self.logger.warning("Failed to validate level ID", stage=stage.value, level_id=level_id, error=str(e))
            return None
        if level is None:
            self.rejected_ids.add(level_id)
        return level

    async def _pattern_stage(self, metadata: VideoMetadata) -> StageOutcome:
        candidates = extract_potential_level_ids(metadata.combined_text, limit=self.pipeline.max_pattern_candidates)
        self.logger.debug("Pattern candidates", candidates=candidates)

        for level_id in candidates:
            if level_id in self.tried_ids:
                continue
            level = await self._validate(level_id, ExtractionStage.PATTERN)
            if level is not None:
                return StageHit(level_id=level_id, level=level)

        return StageMiss(reason=f"none of {len(candidates)} candidates validated")

    async def _semantic_stage(self, metadata: VideoMetadata) -> StageOutcome:
        try:
            self.semantic = await self.pipeline.semantic_extractor.extract(
                metadata.title, metadata.description, metadata.channel_title
            )
        except Exception as e:
            self.logger.warning("Semantic extraction failed", error=str(e), error_type=type(e).__name__)
            return StageMiss(reason="semantic extraction failed")

        semantic = self.semantic
        if not semantic.level_id or not semantic.is_usable:
            return StageMiss(reason="no confident level ID from model")
        if semantic.level_id in self.tried_ids:
            self.logger.debug("Model level ID already tried", level_id=semantic.level_id)
            return StageMiss(reason="model level ID already tried")

        level = await self._validate(semantic.level_id, ExtractionStage.SEMANTIC)
        if level is None:
            return StageMiss(reason="model level ID did not validate")
        return StageHit(level_id=semantic.level_id, level=level)

    async def _name_search_stage(self) -> StageOutcome:
        semantic = self.semantic
        if semantic is None or not semantic.level_names or not semantic.is_usable:
            return StageMiss(reason="no confident level names")

        names = list(semantic.level_names)
        self.logger.info("Searching by level name", names=names)
        try:
            level = await self.pipeline.authority.search_with_fallback(names)
        except Exception as e:
            self.logger.warning("Level name search failed", names=names, error=str(e))
            return StageMiss(reason="name search failed")

        if level is None:
            return StageMiss(reason="no level matched the names")
        if level.id in self.rejected_ids:
            self.logger.warning("Name search matched a level ID already rejected", level_id=level.id, names=names)
            return StageMiss(reason="name search matched a rejected level ID")
        return StageHit(level_id=level.id, level=level)


class LevelExtractionPipeline:
    """Dependency set for extraction runs: video metadata, model and level authority."""

    def __init__(
        self,
        metadata_fetcher: MetadataFetcher,
        semantic_extractor: SemanticExtractor,
        authority: LevelAuthority,
        max_pattern_candidates: int | None = None,
        limiters: RateLimiterRegistry | None = None,
    ):
        self.metadata_fetcher = metadata_fetcher
        self.semantic_extractor = semantic_extractor
        self.authority = authority
        self.max_pattern_candidates = max_pattern_candidates
        self.limiters = limiters

    @classmethod
    def from_config(cls, config: Config | None = None, limiters: RateLimiterRegistry | None = None):
        """Build the production pipeline with one shared HTTP client and one limiter per dependency."""
        config = config or get_config()
        limiters = limiters or RateLimiterRegistry.from_config(config)
        http_client = httpx.AsyncClient(timeout=config.request_timeout, headers={"User-Agent": "level-scout/0.1"})

        return cls(
            metadata_fetcher=YouTubeMetadataFetcher(
                limiters.get(YOUTUBE),
                client=http_client,
                api_key=config.youtube_api_key,
                base_url=config.youtube_base_url,
            ),
            semantic_extractor=SemanticLevelExtractor(
                limiters.get(OPENAI),
                lm=build_language_model(api_key=config.openai_api_key, model=config.openai_model),
                description_max_chars=config.description_max_chars,
            ),
            authority=GDBrowserClient(
                limiters.get(GDBROWSER),
                client=http_client,
                base_url=config.gdbrowser_base_url,
                retry_attempts=config.retry_attempts,
                retry_base_delay=config.retry_base_delay,
            ),
            max_pattern_candidates=config.max_pattern_candidates,
            limiters=limiters,
        )

    async def extract_level(self, video_id: str) -> ExtractionResult:
        """Run a fresh extraction for one video."""
        return await ExtractionRun(self, video_id).run()

    async def close(self) -> None:
        """Close adapters that own network resources."""
        for adapter in (self.metadata_fetcher, self.authority):
            close = getattr(adapter, "close", None)
            if close is not None:
                await close()
