"""
Deduplication Tools

Dictionary-returning entry points over a DuplicateReviewSession: analysis,
merge and delete resolution, and statistics. Errors never escape a tool.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from ..models import TextRecord, DuplicateGroup, RecordId
from ..deduplication import DuplicateReviewSession, SimilarityScorer, suggest_survivor, DEFAULT_THRESHOLD
from ..deduplication.clustering import validate_threshold, validate_records
from .errors import create_success_response, create_tool_error


PREVIEW_LENGTH = 120


def _to_records(records: Sequence[Union[TextRecord, Dict[str, Any]]]) -> List[TextRecord]:
    return [TextRecord.from_dict(r) if isinstance(r, dict) else r for r in records]


def _preview(text: str) -> str:
    text = " ".join(text.split())
    if len(text) <= PREVIEW_LENGTH:
        return text
    return text[:PREVIEW_LENGTH - 3] + "..."


def format_group(group: DuplicateGroup) -> Dict[str, Any]:
    """Render a duplicate group for display."""
    return {
        "group_id": group.group_id,
        "size": len(group.members),
        "similarity": round(group.group_similarity, 4),
        "similarity_percent": round(group.group_similarity * 100),
        "suggested_keep_id": suggest_survivor(group).id,
        "members": [
            {
                "id": record.id,
                "name": record.name,
                "description": record.description,
                "preview": _preview(record.content),
                "tags": sorted(record.tags),
                "created_at": record.created_at,
                "updated_at": record.updated_at,
                "similarity_to_leader": (
                    1.0 if index == 0 else round(group.member_scores.get(record.id, 0.0), 4)
                )
            }
            for index, record in enumerate(group.members)
        ]
    }


async def analyze_duplicates_tool(session: DuplicateReviewSession,
                                  records: Sequence[Union[TextRecord, Dict[str, Any]]],
                                  threshold: Optional[float] = None,
                                  limit: Optional[int] = None) -> dict:
    """Analyze a record snapshot for duplicate groups.

    Args:
        session: DuplicateReviewSession to run the analysis in
        records: Snapshot as TextRecord objects or store-style dictionaries
        threshold: Optional similarity threshold override
        limit: Maximum number of groups to include in the response

    Returns:
        Dictionary with the duplicate groups found
    """
    try:
        groups = await session.analyze(_to_records(records), threshold)
        shown = groups[:limit] if limit is not None else groups
        last_run = session.last_run

        if groups:
            message = (f"Found {len(groups)} group{'s' if len(groups) > 1 else ''} "
                       f"of similar snippets in {last_run.records_processed} records")
        else:
            message = "No duplicates found - all snippets appear to be unique"

        return create_success_response(message, {
            "threshold": last_run.threshold,
            "records_processed": last_run.records_processed,
            "comparisons": last_run.comparisons,
            "processing_time": last_run.processing_time,
            "total_groups_found": len(groups),
            "groups_shown": len(shown),
            "groups": [format_group(group) for group in shown]
        })

    except Exception as e:
        logging.error(f"Failed to analyze duplicates: {e}")
        return create_tool_error("Duplicate analysis failed", e)


async def resolve_merge_tool(session: DuplicateReviewSession, group_id: int,
                             keep_id: Optional[RecordId] = None) -> dict:
    """Keep one snippet of a group and delete the others.

    Args:
        session: DuplicateReviewSession holding the group
        group_id: Pending group to resolve
        keep_id: Record to keep; defaults to the suggested survivor

    Returns:
        Dictionary with per-record outcomes
    """
    try:
        if keep_id is None:
            group = next((g for g in session.pending_groups if g.group_id == group_id), None)
            if group is not None:
                keep_id = suggest_survivor(group).id

        result = await session.resolve_merge(group_id, keep_id)
        message = (f"Merge {result.status.value.replace('_', ' ')}: kept {keep_id}, "
                   f"deleted {len(result.succeeded_ids)}, failed {len(result.failed)}")
        return create_success_response(message, {
            **result.to_dict(),
            "success": result.is_success,
            "group_id": group_id,
            "keep_id": keep_id,
            "pending_groups": len(session.pending_groups)
        })

    except Exception as e:
        logging.error(f"Failed to merge duplicate group {group_id}: {e}")
        return create_tool_error(f"Merge of group {group_id} failed", e)


async def resolve_delete_tool(session: DuplicateReviewSession, group_id: int) -> dict:
    """Delete every snippet of a group.

    Args:
        session: DuplicateReviewSession holding the group
        group_id: Pending group to resolve

    Returns:
        Dictionary with per-record outcomes
    """
    try:
        result = await session.resolve_delete(group_id)
        message = (f"Delete {result.status.value.replace('_', ' ')}: "
                   f"deleted {len(result.succeeded_ids)}, failed {len(result.failed)}")
        return create_success_response(message, {
            **result.to_dict(),
            "success": result.is_success,
            "group_id": group_id,
            "pending_groups": len(session.pending_groups)
        })

    except Exception as e:
        logging.error(f"Failed to delete duplicate group {group_id}: {e}")
        return create_tool_error(f"Delete of group {group_id} failed", e)


def get_deduplication_stats_tool(session: DuplicateReviewSession) -> dict:
    """Get session and resolution statistics.

    Args:
        session: DuplicateReviewSession to report on

    Returns:
        Dictionary with deduplication statistics
    """
    try:
        stats = session.get_session_stats()
        return create_success_response("Deduplication statistics retrieved successfully", {"stats": stats})
    except Exception as e:
        logging.error(f"Failed to get deduplication stats: {e}")
        return create_tool_error("Failed to get deduplication stats", e)


def get_similarity_stats_tool(records: Sequence[Union[TextRecord, Dict[str, Any]]],
                              threshold: float = DEFAULT_THRESHOLD) -> dict:
    """Get the pairwise similarity distribution of a snapshot without grouping it.

    Args:
        records: Snapshot as TextRecord objects or store-style dictionaries
        threshold: Weighted similarity counted as a potential duplicate

    Returns:
        Dictionary with similarity statistics
    """
    try:
        threshold = validate_threshold(threshold)
        snapshot = validate_records(_to_records(records))
        stats = SimilarityScorer().similarity_stats(snapshot, threshold)
        return create_success_response(
            f"Similarity statistics for {stats['total_records']} records",
            {"stats": stats}
        )
    except Exception as e:
        logging.error(f"Failed to get similarity stats: {e}")
        return create_tool_error("Failed to get similarity stats", e)
