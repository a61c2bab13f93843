from .config import Config
from .models import (
    TextRecord, SimilarityScore, DuplicateGroup, ClusterResult,
    MergeAction, DeleteAllAction, ResolutionStatus, ResolutionResult
)
from .deduplication import (
    SimilarityScorer, DuplicateClusterer, build_groups,
    ResolutionCoordinator, DuplicateReviewSession, SessionState
)
from .store import RecordStore, InMemoryRecordStore

__all__ = [
    'Config',
    'TextRecord', 'SimilarityScore', 'DuplicateGroup', 'ClusterResult',
    'MergeAction', 'DeleteAllAction', 'ResolutionStatus', 'ResolutionResult',
    'SimilarityScorer', 'DuplicateClusterer', 'build_groups',
    'ResolutionCoordinator', 'DuplicateReviewSession', 'SessionState',
    'RecordStore', 'InMemoryRecordStore'
]
