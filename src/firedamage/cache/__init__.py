"""Time-bounded memoization of completed assessments."""

from firedamage.cache.store import AssessmentCache

__all__ = ["AssessmentCache"]
