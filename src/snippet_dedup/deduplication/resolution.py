"""
Resolution Coordinator for Duplicate Groups

Turns a reviewed group into delete requests against the record store.
Requests for one resolution are dispatched concurrently and all outcomes are
awaited. There is no transaction: successful deletes are kept even when others
fail, and the outcome is reported as a tagged result instead of raised.
"""

import time
import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..models import (
    DuplicateGroup, TextRecord, RecordId,
    MergeAction, DeleteAllAction, ResolutionResult, ResolutionStatus
)
from ..exceptions import InvalidResolutionError
from ..store import RecordStore


def suggest_survivor(group: DuplicateGroup) -> TextRecord:
    """Choose the record to keep when merging a group.

    Selection criteria:
    1. Most recently updated (primary factor)
    2. More tags (secondary factor)
    3. Longer content (tiebreaker)
    4. Earlier position in the group
    """
    _, best_record = max(
        enumerate(group.members),
        key=lambda item: (
            item[1].updated_at,
            len(item[1].tags),
            len(item[1].content),
            -item[0]
        )
    )
    return best_record


def merged_tags(group: DuplicateGroup, keep_id: RecordId) -> List[str]:
    """Union of tags across the group, for callers that propagate tags to the survivor."""
    if group.get_member(keep_id) is None:
        raise InvalidResolutionError(f"Record '{keep_id}' is not a member of group {group.group_id}")
    tags = set()
    for record in group.members:
        tags.update(record.tags)
    return sorted(tags)


class ResolutionCoordinator:
    """Issues concurrent delete requests for merge and delete-all decisions."""

    def __init__(self, store: RecordStore, on_refresh: Optional[Callable[..., Any]] = None):
        """Initialize resolution coordinator.

        Args:
            store: Record store exposing delete_record
            on_refresh: Called with the ResolutionResult after every resolution,
                successful or not, so the caller can reload its snapshot
        """
        self.store = store
        self.on_refresh = on_refresh
        self.resolution_history: List[Dict[str, Any]] = []

    async def merge(self, keep_id: RecordId, remove_ids: Iterable[RecordId]) -> ResolutionResult:
        """Delete every id in remove_ids and leave keep_id untouched."""
        action = MergeAction(keep_id=keep_id, remove_ids=tuple(remove_ids))
        if keep_id in action.remove_ids:
            raise InvalidResolutionError(
                f"Record '{keep_id}' cannot be both kept and removed",
                {'keep_id': keep_id, 'remove_ids': list(action.remove_ids)}
            )
        return await self.execute(action)

    async def delete_all(self, ids: Iterable[RecordId]) -> ResolutionResult:
        """Delete every id."""
        return await self.execute(DeleteAllAction(ids=tuple(ids)))

    async def execute(self, action) -> ResolutionResult:
        """Run a resolution action and report per-id outcomes.

        Args:
            action: MergeAction or DeleteAllAction

        Returns:
            ResolutionResult tagged SUCCESS, PARTIAL_FAILURE or FAILURE
        """
        start_time = time.time()
        ids = list(action.remove_ids if isinstance(action, MergeAction) else action.ids)

        outcomes = await asyncio.gather(
            *(self._delete(record_id) for record_id in ids),
            return_exceptions=True
        )

        succeeded: List[RecordId] = []
        failed: Dict[RecordId, str] = {}
        for record_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, BaseException):
                failed[record_id] = str(outcome) or type(outcome).__name__
            else:
                succeeded.append(record_id)

        if not failed:
            status = ResolutionStatus.SUCCESS
        elif succeeded:
            status = ResolutionStatus.PARTIAL_FAILURE
        else:
            status = ResolutionStatus.FAILURE

        result = ResolutionResult(
            status=status,
            action=action,
            succeeded_ids=succeeded,
            failed=failed,
            processing_time=time.time() - start_time
        )

        if status is ResolutionStatus.SUCCESS:
            logging.info(f"Resolved {action.kind}: deleted {len(succeeded)} records")
        elif status is ResolutionStatus.PARTIAL_FAILURE:
            logging.warning(f"Partial {action.kind} resolution: {len(succeeded)} deleted, "
                            f"{len(failed)} failed ({', '.join(str(i) for i in failed)})")
        else:
            logging.error(f"{action.kind} resolution failed for all {len(failed)} records: "
                          f"{next(iter(failed.values()))}")

        self._record_history(result)
        await self._signal_refresh(result)
        return result

    async def _delete(self, record_id: RecordId) -> Any:
        delete = self.store.delete_record
        if inspect.iscoroutinefunction(delete):
            return await delete(record_id)

        # Blocking stores run off the event loop
        outcome = await asyncio.to_thread(delete, record_id)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome

    async def _signal_refresh(self, result: ResolutionResult) -> None:
        if self.on_refresh is None:
            return
        try:
            outcome = self.on_refresh(result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logging.warning(f"Refresh callback failed after {result.action.kind}: {e}")

    def _record_history(self, result: ResolutionResult) -> None:
        record = {
            'timestamp': time.time(),
            'kind': result.action.kind,
            'status': result.status.value,
            'requested': len(result.succeeded_ids) + len(result.failed),
            'succeeded_ids': list(result.succeeded_ids),
            'failed_ids': result.failed_ids,
            'processing_time': result.processing_time
        }
        if isinstance(result.action, MergeAction):
            record['keep_id'] = result.action.keep_id
        self.resolution_history.append(record)

    def get_resolution_statistics(self) -> Dict[str, Any]:
        """Get statistics about resolutions performed by this coordinator.

        Returns:
            Dictionary with resolution statistics
        """
        if not self.resolution_history:
            return {
                'total_resolutions': 0,
                'records_deleted': 0,
                'records_failed': 0
            }

        by_status = {status.value: 0 for status in ResolutionStatus}
        for record in self.resolution_history:
            by_status[record['status']] += 1

        return {
            'total_resolutions': len(self.resolution_history),
            'merges': sum(1 for r in self.resolution_history if r['kind'] == 'merge'),
            'deletes': sum(1 for r in self.resolution_history if r['kind'] == 'delete_all'),
            'records_deleted': sum(len(r['succeeded_ids']) for r in self.resolution_history),
            'records_failed': sum(len(r['failed_ids']) for r in self.resolution_history),
            'by_status': by_status,
            'first_resolution': self.resolution_history[0]['timestamp'],
            'last_resolution': self.resolution_history[-1]['timestamp']
        }
