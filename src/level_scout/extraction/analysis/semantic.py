# ABOUTME: DSPy module for model-assisted extraction of level IDs and level names
# ABOUTME: Typed signature outputs give a schema-validated answer; failures surface as SemanticExtractionError

from typing import Literal, cast

import dspy
from pydantic import ValidationError

from level_scout.config import get_config
from level_scout.core.models import SemanticExtraction
from level_scout.extraction.base import SemanticExtractionError
from level_scout.utils.logging import get_logger, log_api_call
from level_scout.utils.rate_limit import RateLimiter

# Values a model may emit instead of a real null
_EMPTY_IDS = {"", "null", "none", "n/a"}


class LevelIdExtractionSignature(dspy.Signature):
    """Extract Geometry Dash level ID(s) and/or level name(s) from YouTube video metadata.

    Level IDs are 6-9 digit numbers, often written as "ID: 12345678", "Level ID 12345678"
    or in parentheses. Level names (e.g. "Bloodbath", "Sonic Wave", "Slaughterhouse") are
    usually in the title, sometimes quoted or capitalized. For a mashup or collaboration
    ("X", "&", "vs", "mashup", "collab") return every individual level name, for example
    "Sunshine X Slaughterhouse" -> ["Sunshine", "Slaughterhouse"]. Ignore modifiers such as
    "Beating", "100%" or "All Coins". Order names by prominence. Only return information you
    are confident about.
    """

    title: str = dspy.InputField(description="Video title")
    channel_title: str = dspy.InputField(description="Name of the uploading channel")
    description: str = dspy.InputField(description="Video description, possibly truncated")

    level_id: str | None = dspy.OutputField(description="The level ID if found, otherwise null")
    level_names: list[str] = dspy.OutputField(
        description="Level names mentioned, several for mashups/collaborations, empty list if none"
    )
    confidence: Literal["high", "medium", "low"] = dspy.OutputField(description="Confidence of the extraction")
    reasoning: str = dspy.OutputField(description="Brief explanation of how the ID or names were determined")


def build_language_model(api_key: str | None = None, model: str | None = None) -> dspy.LM | None:
    """Create the DSPy LM from configuration, or None without an API key."""
    config = get_config()
    final_api_key = api_key or config.openai_api_key
    if not final_api_key:
        get_logger(__name__).warning("No OpenAI API key found - semantic extraction disabled")
        return None
    return dspy.LM(f"openai/{model or config.openai_model}", api_key=final_api_key, temperature=0.0)


def truncate_description(description: str, max_chars: int) -> str:
    if len(description) <= max_chars:
        return description
    return description[:max_chars] + "..."


class SemanticLevelExtractor(dspy.Module):
    """DSPy module that asks a language model for a level ID and level names.

    The LM is held by the instance and applied per call with ``dspy.context``,
    so no global DSPy configuration is required.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        lm: dspy.LM | None = None,
        description_max_chars: int | None = None,
    ):
        super().__init__()
        self.limiter = limiter
        self.lm = lm
        self.description_max_chars = description_max_chars or get_config().description_max_chars
        self.predict = dspy.Predict(LevelIdExtractionSignature)
        self.logger = get_logger(__name__)

    async def aforward(self, title: str, description: str, channel_title: str) -> SemanticExtraction:
        """Run the prediction and validate it into a SemanticExtraction.

        Raises:
            SemanticExtractionError: If the model call fails or the answer violates the schema
        """
        if self.lm is None:
            raise SemanticExtractionError("OpenAI API key not configured - set LEVEL_SCOUT_OPENAI_API_KEY")

        try:
            with dspy.context(lm=self.lm):
                result = await self.predict.acall(
                    title=title,
                    channel_title=channel_title,
                    description=truncate_description(description, self.description_max_chars),
                )
        except Exception as e:
            raise SemanticExtractionError(f"Model call failed: {e}") from e

        result = cast("LevelIdExtractionSignature", result)

        try:
            level_id = result.level_id.strip() if result.level_id is not None else None
            return SemanticExtraction(
                level_id=None if level_id is None or level_id.lower() in _EMPTY_IDS else level_id,
                level_names=tuple(name.strip() for name in result.level_names if name and name.strip()),
                confidence=result.confidence,
                reasoning=result.reasoning or "",
            )
        except (ValidationError, TypeError, AttributeError) as e:
            raise SemanticExtractionError(f"Model response violated the extraction schema: {e}") from e

    @log_api_call("openai")
    async def extract(self, title: str, description: str, channel_title: str) -> SemanticExtraction:
        """Rate-limited entry point used by the pipeline."""
        async with self.limiter.admit():
            extraction = await self.aforward(title, description, channel_title)
        self.logger.debug(
            "Semantic extraction",
            level_id=extraction.level_id,
            level_names=list(extraction.level_names),
            confidence=extraction.confidence.value,
        )
        return extraction
