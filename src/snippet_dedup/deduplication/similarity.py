"""
Edit-Distance Similarity for Snippet Deduplication

Scores two snippets by comparing their content and their names independently
with Levenshtein distance and blending the two similarities with fixed weights.
"""

import time
import logging
from typing import List, Dict, Any, Sequence

import numpy as np

from ..models import TextRecord, SimilarityScore
from ..exceptions import InvalidRecordError


# Engine constants, not tunable per call
CONTENT_WEIGHT = 0.8
NAME_WEIGHT = 0.2


def edit_distance(str1: str, str2: str) -> int:
    """Levenshtein distance using a single cost row sized to the shorter string."""
    if len(str1) < len(str2):
        str1, str2 = str2, str1

    costs = list(range(len(str2) + 1))
    for i, char1 in enumerate(str1, 1):
        last_value = i
        for j, char2 in enumerate(str2, 1):
            if char1 == char2:
                new_value = costs[j - 1]
            else:
                new_value = min(costs[j - 1], last_value, costs[j]) + 1
            costs[j - 1] = last_value
            last_value = new_value
        costs[len(str2)] = last_value

    return costs[len(str2)]


def string_similarity(str1: str, str2: str) -> float:
    """Convert edit distance into a similarity in [0, 1].

    Two empty strings are identical (1.0).
    """
    longest = max(len(str1), len(str2))
    if longest == 0:
        return 1.0
    return (longest - edit_distance(str1, str2)) / longest


class SimilarityScorer:
    """Weighted content/name similarity between two text records."""

    content_weight = CONTENT_WEIGHT
    name_weight = NAME_WEIGHT

    def score(self, record_a: TextRecord, record_b: TextRecord) -> SimilarityScore:
        """Score a pair of records.

        Args:
            record_a: First record
            record_b: Second record

        Returns:
            SimilarityScore with content, name and weighted similarity
        """
        if record_a is None or record_b is None:
            raise InvalidRecordError("Cannot score a missing record")

        content_similarity = string_similarity(record_a.content.lower(), record_b.content.lower())
        name_similarity = string_similarity(record_a.name.lower(), record_b.name.lower())
        weighted = content_similarity * self.content_weight + name_similarity * self.name_weight

        return SimilarityScore(
            record_a_id=record_a.id,
            record_b_id=record_b.id,
            content_similarity=content_similarity,
            name_similarity=name_similarity,
            weighted=min(1.0, max(0.0, weighted))
        )

    def similarity(self, record_a: TextRecord, record_b: TextRecord) -> float:
        """Weighted similarity only."""
        return self.score(record_a, record_b).weighted

    def similarity_stats(self, records: Sequence[TextRecord], threshold: float = 0.85) -> Dict[str, Any]:
        """Get statistics about the pairwise similarity distribution of a snapshot.

        Args:
            records: Snapshot of records to compare
            threshold: Weighted similarity counted as a potential duplicate

        Returns:
            Dictionary with similarity statistics
        """
        if len(records) < 2:
            return {
                'total_records': len(records),
                'similarity_pairs': 0,
                'mean_similarity': 0.0,
                'max_similarity': 0.0,
                'potential_duplicates': 0
            }

        start_time = time.time()
        similarities: List[float] = []
        for i in range(len(records)):
            for j in range(i + 1, len(records)):
                similarities.append(self.score(records[i], records[j]).weighted)

        values = np.array(similarities)
        duplicate_count = int(np.count_nonzero(values >= threshold))

        logging.info(f"Similarity stats computed for {len(records)} records "
                     f"({len(similarities)} pairs) in {time.time() - start_time:.2f}s")

        return {
            'total_records': len(records),
            'similarity_pairs': len(similarities),
            'mean_similarity': float(np.mean(values)),
            'max_similarity': float(np.max(values)),
            'min_similarity': float(np.min(values)),
            'std_similarity': float(np.std(values)),
            'potential_duplicates': duplicate_count,
            'duplication_rate': duplicate_count / len(similarities)
        }
