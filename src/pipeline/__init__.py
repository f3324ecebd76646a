"""Pipeline orchestration components for bookbites ingestion."""

from src.pipeline.ingestion_pipeline import IngestionPipeline
from src.pipeline.progress_tracker import ProgressTracker

__all__ = [
    "IngestionPipeline",
    "ProgressTracker",
]
