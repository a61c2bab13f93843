"""
Duplicate Review Session

Drives one analysis session through its states:

    IDLE --analyze--> ANALYZING --groups ready--> REVIEWING
    REVIEWING --resolve--> RESOLVING --done--> REVIEWING
    REVIEWING --close--> IDLE

The clustering pass runs in a worker thread so the event loop stays
responsive, and can be cancelled between leader iterations. Nothing survives
close() or a new analyze() call.
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Union

from ..config import Config
from ..models import TextRecord, DuplicateGroup, ClusterResult, ResolutionResult, RecordId
from ..exceptions import SessionStateError, InvalidResolutionError, AnalysisCancelledError
from ..store import RecordStore
from .similarity import SimilarityScorer
from .clustering import DuplicateClusterer, DEFAULT_THRESHOLD, validate_threshold, validate_records
from .resolution import ResolutionCoordinator


class SessionState(Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    REVIEWING = "reviewing"
    RESOLVING = "resolving"


class DuplicateReviewSession:
    """Engine API: analyze a snapshot, then merge or delete the groups it found."""

    def __init__(self, store: RecordStore, config: Optional[Config] = None,
                 on_refresh: Optional[Callable[..., Any]] = None,
                 scorer: Optional[SimilarityScorer] = None):
        """Initialize review session.

        Args:
            store: Record store used for resolution deletes
            config: Optional Config; defaults are used when omitted
            on_refresh: Called after every resolution so the caller reloads records
            scorer: Optional SimilarityScorer override
        """
        dedup_config = config.get_deduplication_config() if config else {}
        resolution_config = config.get_resolution_config() if config else {}

        self.default_threshold = validate_threshold(
            dedup_config.get('similarity_threshold', DEFAULT_THRESHOLD)
        )
        self.min_records = dedup_config.get('min_records', 2)

        refresh = on_refresh if resolution_config.get('refresh_after_resolution', True) else None
        self.clusterer = DuplicateClusterer(scorer)
        self.coordinator = ResolutionCoordinator(store, on_refresh=refresh)

        self._state = SessionState.IDLE
        self._pending: Dict[int, DuplicateGroup] = {}
        self._processing: Set[int] = set()
        self._cancel_event: Optional[threading.Event] = None
        self.last_run: Optional[ClusterResult] = None

    @property
    def state(self) -> SessionState:
        if self._state is SessionState.REVIEWING and self._processing:
            return SessionState.RESOLVING
        return self._state

    @property
    def pending_groups(self) -> List[DuplicateGroup]:
        return [group.model_copy(deep=True) for group in self._pending.values()]

    def is_processing(self, group: Union[DuplicateGroup, int]) -> bool:
        group_id = group.group_id if isinstance(group, DuplicateGroup) else group
        return group_id in self._processing

    async def analyze(self, records: Sequence[TextRecord],
                      threshold: Optional[float] = None) -> List[DuplicateGroup]:
        """Find duplicate groups in a snapshot, replacing any previous groups.

        Args:
            records: Snapshot of records; later changes to the caller's list are not seen
            threshold: Optional override of the configured threshold

        Returns:
            List of DuplicateGroup in leader order

        Raises:
            SessionStateError: If an analysis or resolution is already running
            AnalysisCancelledError: If cancel() or close() was called mid-run
        """
        if self._state is SessionState.ANALYZING:
            raise SessionStateError("analyze", self._state.value)
        if self._processing:
            raise SessionStateError("analyze", SessionState.RESOLVING.value)

        threshold = validate_threshold(self.default_threshold if threshold is None else threshold)
        snapshot = validate_records(records)

        self._pending = {}
        self.last_run = None

        if len(snapshot) < self.min_records:
            logging.info(f"Not enough records for duplicate analysis ({len(snapshot)})")
            self._cancel_event = None
            self.last_run = ClusterResult(threshold=threshold, records_processed=len(snapshot))
            self._state = SessionState.REVIEWING
            return []

        cancel_event = threading.Event()
        self._cancel_event = cancel_event
        self._state = SessionState.ANALYZING

        try:
            result = await asyncio.to_thread(self.clusterer.cluster, snapshot, threshold, cancel_event)
        except BaseException:
            # Awaiting task cancelled: stop the worker thread too
            cancel_event.set()
            self._finish_run(cancel_event)
            raise

        if cancel_event.is_set():
            self._finish_run(cancel_event)
            raise AnalysisCancelledError(len(snapshot), len(snapshot))

        self._cancel_event = None

        self.last_run = result
        self._pending = {group.group_id: group.model_copy(deep=True) for group in result.groups}
        self._state = SessionState.REVIEWING
        return list(result.groups)

    def _finish_run(self, cancel_event: threading.Event) -> None:
        # A newer analyze() may have started after close(); leave its state alone
        if self._cancel_event is cancel_event:
            self._cancel_event = None
            self._state = SessionState.IDLE

    def cancel(self) -> bool:
        """Request cancellation of a running analysis. Returns False when none is running."""
        if self._state is not SessionState.ANALYZING or self._cancel_event is None:
            return False
        self._cancel_event.set()
        logging.info("Duplicate analysis cancellation requested")
        return True

    async def resolve_merge(self, group: Union[DuplicateGroup, int], keep_id: RecordId) -> ResolutionResult:
        """Keep keep_id and delete the other members of the group."""
        pending = self._get_resolvable_group(group, "merge")
        if pending.get_member(keep_id) is None:
            raise InvalidResolutionError(
                f"Record '{keep_id}' is not a member of group {pending.group_id}",
                {'group_id': pending.group_id, 'keep_id': keep_id}
            )
        remove_ids = [record_id for record_id in pending.member_ids if record_id != keep_id]
        return await self._resolve(pending, self.coordinator.merge, keep_id, remove_ids)

    async def resolve_delete(self, group: Union[DuplicateGroup, int]) -> ResolutionResult:
        """Delete every member of the group."""
        pending = self._get_resolvable_group(group, "delete")
        return await self._resolve(pending, self.coordinator.delete_all, pending.member_ids)

    async def _resolve(self, group: DuplicateGroup, operation, *args) -> ResolutionResult:
        self._processing.add(group.group_id)
        try:
            result = await operation(*args)
        finally:
            self._processing.discard(group.group_id)

        if result.is_success:
            self._pending.pop(group.group_id, None)
        else:
            logging.info(f"Group {group.group_id} left pending after {result.status.value}")
        return result

    def _get_resolvable_group(self, group: Union[DuplicateGroup, int], operation: str) -> DuplicateGroup:
        if self._state is not SessionState.REVIEWING:
            raise SessionStateError(operation, self._state.value)

        group_id = group.group_id if isinstance(group, DuplicateGroup) else group
        pending = self._pending.get(group_id)
        if pending is None:
            raise InvalidResolutionError(f"Group {group_id} is not pending in this session",
                                         {'group_id': group_id})
        if isinstance(group, DuplicateGroup) and group.member_ids != pending.member_ids:
            raise InvalidResolutionError(f"Group {group_id} does not belong to the current analysis",
                                         {'group_id': group_id})
        if group_id in self._processing:
            raise SessionStateError(f"{operation} group {group_id}", SessionState.RESOLVING.value)
        return pending

    def close(self) -> None:
        """Discard all groups and return to IDLE."""
        if self._cancel_event is not None:
            self._cancel_event.set()
            self._cancel_event = None
        self._pending = {}
        self.last_run = None
        self._state = SessionState.IDLE

    def get_session_stats(self) -> Dict[str, Any]:
        """Get statistics about the current session.

        Returns:
            Dictionary with session state, last run and resolution statistics
        """
        last_run = None
        if self.last_run is not None:
            last_run = {
                'threshold': self.last_run.threshold,
                'records_processed': self.last_run.records_processed,
                'comparisons': self.last_run.comparisons,
                'groups_found': len(self.last_run.groups),
                'processing_time': self.last_run.processing_time
            }

        return {
            'state': self.state.value,
            'default_threshold': self.default_threshold,
            'pending_groups': len(self._pending),
            'groups_processing': len(self._processing),
            'last_run': last_run,
            'resolution': self.coordinator.get_resolution_statistics()
        }
