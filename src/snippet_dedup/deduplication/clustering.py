"""
Greedy Leader Clustering for Duplicate Detection

Partitions a snapshot of records into duplicate groups in a single pass.
Records are visited in the order supplied: the first unvisited record becomes
a leader and claims every later unvisited record whose weighted similarity to
it reaches the threshold. Grouping is not transitive, so the output depends on
input order but is fully deterministic for a given order.
"""

import time
import logging
import threading
from typing import List, Optional, Sequence, Set

from ..models import TextRecord, DuplicateGroup, ClusterResult, SimilarityScore, RecordId
from ..exceptions import InvalidRecordError, AnalysisCancelledError, ConfigurationError
from .similarity import SimilarityScorer


DEFAULT_THRESHOLD = 0.85


def validate_threshold(threshold: float) -> float:
    """Reject thresholds outside [0, 1]."""
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise ConfigurationError(f"Similarity threshold must be a number, got {threshold!r}")
    if not 0.0 <= threshold <= 1.0:
        raise ConfigurationError(
            f"Similarity threshold must be between 0 and 1, got {threshold}",
            {'threshold': threshold}
        )
    return float(threshold)


def validate_records(records: Sequence[TextRecord]) -> List[TextRecord]:
    """Check the snapshot contract: no missing records and unique ids."""
    if records is None:
        raise InvalidRecordError("Record snapshot is required")

    snapshot = list(records)
    seen_ids: Set[RecordId] = set()
    for index, record in enumerate(snapshot):
        if record is None:
            raise InvalidRecordError(f"Record at position {index} is missing", index=index)
        if not isinstance(record, TextRecord):
            raise InvalidRecordError(
                f"Record at position {index} is {type(record).__name__}, expected TextRecord",
                index=index
            )
        if record.id in seen_ids:
            raise InvalidRecordError(
                f"Record id '{record.id}' appears more than once in the snapshot",
                record_id=record.id, index=index
            )
        seen_ids.add(record.id)
    return snapshot


class DuplicateClusterer:
    """Builds duplicate groups from a record snapshot."""

    def __init__(self, scorer: Optional[SimilarityScorer] = None):
        self.scorer = scorer or SimilarityScorer()

    def cluster(self, records: Sequence[TextRecord], threshold: float = DEFAULT_THRESHOLD,
                cancel_event: Optional[threading.Event] = None) -> ClusterResult:
        """Run one greedy leader pass over the snapshot.

        Args:
            records: Snapshot of records, in the order leaders are chosen
            threshold: Inclusive weighted similarity threshold
            cancel_event: Optional event checked between leader iterations

        Returns:
            ClusterResult with the groups and every pair score computed
        """
        threshold = validate_threshold(threshold)
        snapshot = validate_records(records)
        start_time = time.time()

        groups: List[DuplicateGroup] = []
        pair_scores: List[SimilarityScore] = []
        visited: Set[RecordId] = set()

        for i, leader in enumerate(snapshot):
            if cancel_event is not None and cancel_event.is_set():
                logging.info(f"Duplicate analysis cancelled at record {i} of {len(snapshot)}")
                raise AnalysisCancelledError(i, len(snapshot))

            if leader.id in visited:
                continue

            members = [leader]
            member_scores = {}
            max_similarity = 0.0

            for candidate in snapshot[i + 1:]:
                if candidate.id in visited:
                    continue

                score = self.scorer.score(leader, candidate)
                pair_scores.append(score)

                if score.weighted >= threshold:
                    members.append(candidate)
                    member_scores[candidate.id] = score.weighted
                    visited.add(candidate.id)
                    max_similarity = max(max_similarity, score.weighted)

            if len(members) > 1:
                groups.append(DuplicateGroup(
                    group_id=len(groups),
                    members=members,
                    group_similarity=max_similarity,
                    member_scores=member_scores
                ))
                visited.add(leader.id)

        processing_time = time.time() - start_time
        logging.info(f"Duplicate clustering completed: {len(groups)} groups from "
                     f"{len(snapshot)} records ({len(pair_scores)} comparisons) in {processing_time:.2f}s")

        return ClusterResult(
            groups=groups,
            pair_scores=pair_scores,
            threshold=threshold,
            records_processed=len(snapshot),
            comparisons=len(pair_scores),
            processing_time=processing_time
        )


def build_groups(records: Sequence[TextRecord], threshold: float = DEFAULT_THRESHOLD,
                 scorer: Optional[SimilarityScorer] = None,
                 cancel_event: Optional[threading.Event] = None) -> List[DuplicateGroup]:
    """Partition records into duplicate groups. Empty or single-record input gives []."""
    return DuplicateClusterer(scorer).cluster(records, threshold, cancel_event).groups
