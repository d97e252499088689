# ABOUTME: Business logic and orchestration layer
# ABOUTME: Staged extraction runs and per-message dispatch over video links

"""
Core Layer: Extraction orchestration

This layer handles:
- Domain models for metadata, model answers, levels and results
- The staged extraction run (pattern → semantic → name search)
- Message handling that fans out one run per linked video

Data Flow: extraction/ and services/ adapters → Staged run → ExtractionResult
"""

from .models import (
    Confidence,
    ExtractionFailure,
    ExtractionResult,
    ExtractionStage,
    ExtractionSuccess,
    FailureKind,
    LevelRecord,
    SemanticExtraction,
    VideoMetadata,
)

# Import the pipeline on-demand to avoid circular imports
# Use: from level_scout.core.pipeline import LevelExtractionPipeline

__all__ = [
    "Confidence",
    "ExtractionFailure",
    "ExtractionResult",
    "ExtractionStage",
    "ExtractionSuccess",
    "FailureKind",
    "LevelRecord",
    "SemanticExtraction",
    "VideoMetadata",
]
