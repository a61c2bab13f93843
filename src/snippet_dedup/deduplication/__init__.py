"""
Snippet Duplicate Detection - Deduplication Module

Finds snippets that are likely duplicates of each other and resolves them
through an external record store.

Components:
- similarity.py: Levenshtein-based weighted content/name similarity
- clustering.py: Greedy leader clustering into duplicate groups
- resolution.py: Concurrent merge/delete requests with partial-failure results
- session.py: Analysis and review session state machine
"""

from .similarity import SimilarityScorer, edit_distance, string_similarity, CONTENT_WEIGHT, NAME_WEIGHT
from .clustering import DuplicateClusterer, build_groups, DEFAULT_THRESHOLD
from .resolution import ResolutionCoordinator, suggest_survivor, merged_tags
from .session import DuplicateReviewSession, SessionState

__all__ = [
    'SimilarityScorer', 'edit_distance', 'string_similarity', 'CONTENT_WEIGHT', 'NAME_WEIGHT',
    'DuplicateClusterer', 'build_groups', 'DEFAULT_THRESHOLD',
    'ResolutionCoordinator', 'suggest_survivor', 'merged_tags',
    'DuplicateReviewSession', 'SessionState'
]
