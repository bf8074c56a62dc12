"""Address-to-assessment orchestration.

Provides the cached, progress-reporting pipeline that ties the ArcGIS
stages together.
"""

from firedamage.assessment.pipeline import AssessmentPipeline, cache_key, create_pipeline
from firedamage.assessment.progress import ProgressNotifier, ProgressSink

__all__ = [
    "AssessmentPipeline",
    "ProgressNotifier",
    "ProgressSink",
    "cache_key",
    "create_pipeline",
]
