# ABOUTME: Domain models for the level extraction pipeline
# ABOUTME: Video metadata, semantic extraction, level records and the tagged extraction result

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ExtractionStage(str, Enum):
    """Pipeline stage that produced a validated level."""

    PATTERN = "pattern"
    SEMANTIC = "semantic"
    NAME_SEARCH = "name_search"


class Confidence(str, Enum):
    """Model-reported confidence for a semantic extraction."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FailureKind(str, Enum):
    """Why a run ended without a level."""

    VIDEO_NOT_FOUND = "VIDEO_NOT_FOUND"
    NO_LEVEL_ID_FOUND = "NO_LEVEL_ID_FOUND"


class VideoMetadata(BaseModel):
    """Text fields of a YouTube video used as extraction input."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    channel_title: str = ""
    tags: tuple[str, ...] = ()

    @property
    def combined_text(self) -> str:
        """Title, description and tags joined into one searchable string."""
        return " ".join([self.title, self.description, " ".join(self.tags)])


class SemanticExtraction(BaseModel):
    """Structured answer from the language model."""

    model_config = ConfigDict(frozen=True)

    level_id: str | None = Field(default=None, description="Level ID if one was found")
    level_names: tuple[str, ...] = Field(default=(), description="Level names in order of prominence")
    confidence: Confidence = Field(description="Confidence label of the extraction")
    reasoning: str = Field(default="", description="Brief explanation of how the answer was determined")

    @property
    def is_usable(self) -> bool:
        return self.confidence != Confidence.LOW


class LevelRecord(BaseModel):
    """Level data as returned by GDBrowser.

    Only ``id`` is interpreted by the pipeline; everything else is carried
    through for presentation, including fields not modelled here.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    name: str = "Unknown Level"
    author: str = "Unknown"
    difficulty: str = "NA"
    stars: int = 0
    downloads: int = 0
    likes: int = 0
    length: str = "Unknown"
    song_name: str | None = Field(default=None, alias="songName")
    song_author: str | None = Field(default=None, alias="songAuthor")
    description: str | None = None


class ExtractionSuccess(BaseModel):
    """A validated level and how it was found."""

    model_config = ConfigDict(frozen=True)

    outcome: Literal["success"] = "success"
    level_id: str
    level: LevelRecord
    stage: ExtractionStage
    metadata: VideoMetadata
    confidence: Confidence | None = None
    reasoning: str | None = None
    searched_names: tuple[str, ...] | None = None


class ExtractionFailure(BaseModel):
    """A run that ended without a validated level."""

    model_config = ConfigDict(frozen=True)

    outcome: Literal["failure"] = "failure"
    kind: FailureKind
    metadata: VideoMetadata | None = None


ExtractionResult = Annotated[ExtractionSuccess | ExtractionFailure, Field(discriminator="outcome")]
