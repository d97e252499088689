# ABOUTME: Integration tests for the staged level extraction pipeline
# ABOUTME: Fake adapters drive each stage through hits, misses and dependency failures

import pytest

from level_scout.config import Config
from level_scout.core.models import (
    Confidence,
    ExtractionFailure,
    ExtractionStage,
    ExtractionSuccess,
    FailureKind,
    LevelRecord,
    SemanticExtraction,
    VideoMetadata,
)
from level_scout.core.pipeline import ExtractionRun, LevelExtractionPipeline, RunState
from level_scout.extraction.base import MetadataFetchError, SemanticExtractionError


class FakeMetadataFetcher:
    def __init__(self, metadata: VideoMetadata | None = None, error: Exception | None = None):
        self.metadata = metadata
        self.error = error
        self.calls: list[str] = []

    async def get_video_metadata(self, video_id: str) -> VideoMetadata | None:
        self.calls.append(video_id)
        if self.error:
            raise self.error
        return self.metadata


class FakeSemanticExtractor:
    def __init__(self, extraction: SemanticExtraction | None = None, error: Exception | None = None):
        self.extraction = extraction
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    async def extract(self, title: str, description: str, channel_title: str) -> SemanticExtraction:
        self.calls.append((title, description, channel_title))
        if self.error:
            raise self.error
        assert self.extraction is not None
        return self.extraction


class FakeAuthority:
    """Knows a fixed set of level IDs and level names."""

    def __init__(self, levels: dict[str, LevelRecord] | None = None, names: dict[str, LevelRecord] | None = None):
        self.levels = levels or {}
        self.names = names or {}
        self.lookups: list[str] = []
        self.searches: list[list[str]] = []

    async def get_level_with_retry(self, level_id: str, max_attempts: int | None = None) -> LevelRecord | None:
        self.lookups.append(level_id)
        return self.levels.get(level_id)

    async def search_with_fallback(self, names: list[str]) -> LevelRecord | None:
        self.searches.append(names)
        for name in names:
            if name in self.names:
                return self.names[name]
        return None


def _level(level_id: str, name: str) -> LevelRecord:
    return LevelRecord(id=level_id, name=name, author="Tester", difficulty="Insane")


def _pipeline(fetcher, extractor, authority, **kwargs) -> LevelExtractionPipeline:
    return LevelExtractionPipeline(
        metadata_fetcher=fetcher, semantic_extractor=extractor, authority=authority, **kwargs
    )


class TestEndToEndScenarios:
    """Test complete runs for representative videos."""

    @pytest.mark.asyncio
    async def test_labelled_id_in_title(self):
        """Test a labelled ID in the title resolves in the pattern stage with no model call."""
        metadata = VideoMetadata(title="Beating Bloodbath (ID: 10565740)", description="GG")
        extractor = FakeSemanticExtractor()
        authority = FakeAuthority(levels={"10565740": _level("10565740", "Bloodbath")})

        result = await _pipeline(FakeMetadataFetcher(metadata), extractor, authority).extract_level("vid00000001")

        assert isinstance(result, ExtractionSuccess)
        assert result.stage == ExtractionStage.PATTERN
        assert result.level_id == "10565740"
        assert result.level.name == "Bloodbath"
        assert authority.lookups == ["10565740"]
        assert extractor.calls == []
        assert authority.searches == []

    @pytest.mark.asyncio
    async def test_second_level_name_matches(self):
        """Test a mashup video resolved by the second name the model returned."""
        metadata = VideoMetadata(title="Sunshine X Slaughterhouse", channel_title="GD Player")
        extraction = SemanticExtraction(
            level_names=("Sunshine", "Slaughterhouse"), confidence=Confidence.HIGH, reasoning="Mashup of two levels"
        )
        authority = FakeAuthority(names={"Slaughterhouse": _level("76196969", "Slaughterhouse")})

        result = await _pipeline(
            FakeMetadataFetcher(metadata), FakeSemanticExtractor(extraction), authority
        ).extract_level("vid00000001")

        assert isinstance(result, ExtractionSuccess)
        assert result.stage == ExtractionStage.NAME_SEARCH
        assert result.level_id == "76196969"
        assert result.searched_names == ("Sunshine", "Slaughterhouse")
        assert authority.lookups == []
        assert authority.searches == [["Sunshine", "Slaughterhouse"]]


class TestPatternStage:
    """Test runs resolved by regex candidates."""

    @pytest.mark.asyncio
    async def test_explicit_id_in_description(self):
        """Test an ID in the description validates without asking the model."""
        metadata = VideoMetadata(title="Bloodbath 100%", description="Level ID: 12345678")
        extractor = FakeSemanticExtractor()
        authority = FakeAuthority(levels={"12345678": _level("12345678", "Bloodbath")})

        result = await _pipeline(FakeMetadataFetcher(metadata), extractor, authority).extract_level("vid00000001")

        assert isinstance(result, ExtractionSuccess)
        assert result.stage == ExtractionStage.PATTERN
        assert result.level_id == "12345678"
        assert result.confidence is None
        assert extractor.calls == []

    @pytest.mark.asyncio
    async def test_candidates_tried_in_order_until_one_validates(self):
        """Test invalid candidates are skipped."""
        metadata = VideoMetadata(title="ID: 11111111", description="(22222222)")
        authority = FakeAuthority(levels={"22222222": _level("22222222", "Second")})

        result = await _pipeline(FakeMetadataFetcher(metadata), FakeSemanticExtractor(), authority).extract_level(
            "vid00000001"
        )

        assert isinstance(result, ExtractionSuccess)
        assert result.level_id == "22222222"
        assert authority.lookups == ["11111111", "22222222"]

    @pytest.mark.asyncio
    async def test_candidate_cap(self):
        """Test max_pattern_candidates bounds the lookups made by the pattern stage."""
        metadata = VideoMetadata(description="11111111 22222222 33333333")
        authority = FakeAuthority()
        extractor = FakeSemanticExtractor(SemanticExtraction(confidence=Confidence.LOW))

        pipeline = _pipeline(FakeMetadataFetcher(metadata), extractor, authority, max_pattern_candidates=2)
        await pipeline.extract_level("vid00000001")

        assert authority.lookups == ["11111111", "22222222"]


class TestSemanticStage:
    """Test runs resolved by the model's level ID."""

    @pytest.mark.asyncio
    async def test_model_level_id(self):
        """Test a confident model ID is validated when no pattern matched."""
        metadata = VideoMetadata(title="My hardest level yet", channel_title="GD Player")
        extraction = SemanticExtraction(level_id="87654321", confidence=Confidence.MEDIUM, reasoning="From title")
        authority = FakeAuthority(levels={"87654321": _level("87654321", "Hardest")})
        extractor = FakeSemanticExtractor(extraction)

        result = await _pipeline(FakeMetadataFetcher(metadata), extractor, authority).extract_level("vid00000001")

        assert isinstance(result, ExtractionSuccess)
        assert result.stage == ExtractionStage.SEMANTIC
        assert result.confidence == Confidence.MEDIUM
        assert result.reasoning == "From title"
        assert result.searched_names is None
        assert extractor.calls == [("My hardest level yet", "", "GD Player")]

    @pytest.mark.asyncio
    async def test_already_tried_id_not_validated_twice(self):
        """Test an ID that failed in the pattern stage is not looked up again."""
        metadata = VideoMetadata(description="ID: 12345678")
        extraction = SemanticExtraction(level_id="12345678", confidence=Confidence.HIGH)
        authority = FakeAuthority()

        result = await _pipeline(
            FakeMetadataFetcher(metadata), FakeSemanticExtractor(extraction), authority
        ).extract_level("vid00000001")

        assert isinstance(result, ExtractionFailure)
        assert authority.lookups == ["12345678"]

    @pytest.mark.asyncio
    async def test_low_confidence_is_ignored(self):
        """Test low confidence answers are neither validated nor searched."""
        metadata = VideoMetadata(title="Something")
        extraction = SemanticExtraction(level_id="87654321", level_names=("Bloodbath",), confidence=Confidence.LOW)
        authority = FakeAuthority(
            levels={"87654321": _level("87654321", "Hardest")}, names={"Bloodbath": _level("1", "Bloodbath")}
        )

        result = await _pipeline(
            FakeMetadataFetcher(metadata), FakeSemanticExtractor(extraction), authority
        ).extract_level("vid00000001")

        assert isinstance(result, ExtractionFailure)
        assert result.kind == FailureKind.NO_LEVEL_ID_FOUND
        assert authority.lookups == []
        assert authority.searches == []

    @pytest.mark.asyncio
    async def test_model_failure_is_absorbed(self):
        """Test a failing model ends the run as not found instead of raising."""
        metadata = VideoMetadata(title="Something")

        result = await _pipeline(
            FakeMetadataFetcher(metadata),
            FakeSemanticExtractor(error=SemanticExtractionError("model down")),
            FakeAuthority(),
        ).extract_level("vid00000001")

        assert isinstance(result, ExtractionFailure)
        assert result.kind == FailureKind.NO_LEVEL_ID_FOUND
        assert result.metadata == metadata


class TestNameSearchStage:
    """Test runs resolved by searching the model's level names."""

    @pytest.mark.asyncio
    async def test_mashup_names(self):
        """Test level names are searched when no ID validated."""
        metadata = VideoMetadata(title="Sunshine X Slaughterhouse")
        extraction = SemanticExtraction(
            level_names=("Sunshine X Slaughterhouse",), confidence=Confidence.HIGH, reasoning="Mashup title"
        )
        authority = FakeAuthority(names={"Sunshine X Slaughterhouse": _level("55520", "Sunshine")})

        result = await _pipeline(
            FakeMetadataFetcher(metadata), FakeSemanticExtractor(extraction), authority
        ).extract_level("vid00000001")

        assert isinstance(result, ExtractionSuccess)
        assert result.stage == ExtractionStage.NAME_SEARCH
        assert result.level_id == "55520"
        assert result.searched_names == ("Sunshine X Slaughterhouse",)
        assert result.confidence == Confidence.HIGH
        assert authority.searches == [["Sunshine X Slaughterhouse"]]

    @pytest.mark.asyncio
    async def test_search_after_invalid_model_id(self):
        """Test names are still searched when the model's ID fails validation."""
        metadata = VideoMetadata(title="Tartarus verified")
        extraction = SemanticExtraction(level_id="99999999", level_names=("Tartarus",), confidence=Confidence.HIGH)
        authority = FakeAuthority(names={"Tartarus": _level("59075347", "Tartarus")})

        result = await _pipeline(
            FakeMetadataFetcher(metadata), FakeSemanticExtractor(extraction), authority
        ).extract_level("vid00000001")

        assert isinstance(result, ExtractionSuccess)
        assert result.stage == ExtractionStage.NAME_SEARCH
        assert authority.lookups == ["99999999"]

    @pytest.mark.asyncio
    async def test_search_hit_on_rejected_id_is_a_miss(self):
        """Test a name match is not reported for an ID the lookup already found absent."""
        metadata = VideoMetadata(title="Bloodbath ID: 12345678")
        extraction = SemanticExtraction(level_names=("Bloodbath",), confidence=Confidence.HIGH)
        authority = FakeAuthority(names={"Bloodbath": _level("12345678", "Bloodbath")})

        result = await _pipeline(
            FakeMetadataFetcher(metadata), FakeSemanticExtractor(extraction), authority
        ).extract_level("vid00000001")

        assert isinstance(result, ExtractionFailure)
        assert result.kind == FailureKind.NO_LEVEL_ID_FOUND
        assert authority.lookups == ["12345678"]
        assert authority.searches == [["Bloodbath"]]

    @pytest.mark.asyncio
    async def test_no_names_no_search(self):
        """Test the search stage is skipped without names."""
        authority = FakeAuthority()

        result = await _pipeline(
            FakeMetadataFetcher(VideoMetadata(title="vlog")),
            FakeSemanticExtractor(SemanticExtraction(confidence=Confidence.HIGH)),
            authority,
        ).extract_level("vid00000001")

        assert isinstance(result, ExtractionFailure)
        assert authority.searches == []


class TestMetadataFailures:
    """Test runs that end before any stage."""

    @pytest.mark.asyncio
    async def test_unknown_video(self):
        """Test a missing video ends with VIDEO_NOT_FOUND."""
        extractor = FakeSemanticExtractor()
        authority = FakeAuthority()

        result = await _pipeline(FakeMetadataFetcher(None), extractor, authority).extract_level("vid00000001")

        assert isinstance(result, ExtractionFailure)
        assert result.kind == FailureKind.VIDEO_NOT_FOUND
        assert extractor.calls == []
        assert authority.lookups == []

    @pytest.mark.asyncio
    async def test_fetch_error(self):
        """Test a failing metadata fetch is reported as VIDEO_NOT_FOUND."""
        fetcher = FakeMetadataFetcher(error=MetadataFetchError("quota exceeded"))

        result = await _pipeline(fetcher, FakeSemanticExtractor(), FakeAuthority()).extract_level("vid00000001")

        assert isinstance(result, ExtractionFailure)
        assert result.kind == FailureKind.VIDEO_NOT_FOUND


class TestExtractionRun:
    """Test the single-use run object."""

    @pytest.mark.asyncio
    async def test_run_is_single_use(self):
        """Test a finished run cannot be restarted."""
        pipeline = _pipeline(FakeMetadataFetcher(None), FakeSemanticExtractor(), FakeAuthority())
        run = ExtractionRun(pipeline, "vid00000001")

        result = await run.run()

        assert run.state == RunState.DONE
        assert run.result is result
        with pytest.raises(RuntimeError):
            await run.run()

    @pytest.mark.asyncio
    async def test_runs_do_not_share_state(self):
        """Test tried IDs are tracked per run."""
        metadata = VideoMetadata(description="ID: 12345678")
        authority = FakeAuthority()
        extractor = FakeSemanticExtractor(SemanticExtraction(confidence=Confidence.LOW))
        pipeline = _pipeline(FakeMetadataFetcher(metadata), extractor, authority)

        await pipeline.extract_level("vid00000001")
        await pipeline.extract_level("vid00000002")

        assert authority.lookups == ["12345678", "12345678"]

    @pytest.mark.asyncio
    async def test_close_closes_adapters(self):
        """Test pipeline.close reaches adapters that own resources."""
        closed: list[str] = []

        class ClosingFetcher(FakeMetadataFetcher):
            async def close(self):
                closed.append("fetcher")

        class ClosingAuthority(FakeAuthority):
            async def close(self):
                closed.append("authority")

        pipeline = _pipeline(ClosingFetcher(), FakeSemanticExtractor(), ClosingAuthority())
        await pipeline.close()

        assert closed == ["fetcher", "authority"]


class TestFromConfig:
    """Test wiring of the production pipeline."""

    @pytest.mark.asyncio
    async def test_adapters_share_one_http_client(self):
        """Test configuration reaches every adapter and one HTTP client is shared."""
        config = Config(youtube_api_key="yt-key", gdbrowser_base_url="https://gd.example/api/", retry_attempts=5)

        pipeline = LevelExtractionPipeline.from_config(config)
        try:
            assert pipeline.metadata_fetcher.api_key == "yt-key"
            assert pipeline.authority.base_url == "https://gd.example/api"
            assert pipeline.authority.retry_attempts == 5
            assert pipeline.metadata_fetcher.http_client is pipeline.authority.http_client
            assert pipeline.semantic_extractor.lm is None
            assert pipeline.limiters is not None
        finally:
            await pipeline.close()
