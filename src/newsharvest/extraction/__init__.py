"""Article content extraction: body scoring and field heuristics."""

from newsharvest.extraction.extractor import FIELD_METHODS, Extractor
from newsharvest.extraction.scorer import CandidateScore, ContentScorer, score_candidates

__all__ = [
    "CandidateScore",
    "ContentScorer",
    "Extractor",
    "FIELD_METHODS",
    "score_candidates",
]
