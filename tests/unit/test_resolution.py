import pytest
from unittest.mock import Mock, AsyncMock

from snippet_dedup.deduplication.clustering import build_groups
from snippet_dedup.deduplication.resolution import ResolutionCoordinator, suggest_survivor, merged_tags
from snippet_dedup.exceptions import InvalidResolutionError, RecordNotFoundError
from snippet_dedup.models import DuplicateGroup, MergeAction, DeleteAllAction, ResolutionStatus


@pytest.fixture
def mock_store():
    """Async store where every delete succeeds."""
    store = Mock()
    store.delete_record = AsyncMock(return_value=True)
    return store


def failing_store(failing_ids):
    store = Mock()

    async def delete_record(record_id):
        if record_id in failing_ids:
            raise RuntimeError(f"database locked while deleting {record_id}")
        return True

    store.delete_record = AsyncMock(side_effect=delete_record)
    return store


class TestMerge:

    @pytest.mark.asyncio
    async def test_merge_deletes_only_removed_ids(self, mock_store):
        coordinator = ResolutionCoordinator(mock_store)
        result = await coordinator.merge(1, [2, 3])

        assert result.status is ResolutionStatus.SUCCESS
        assert result.is_success
        assert sorted(result.succeeded_ids) == [2, 3]
        assert result.failed == {}
        assert isinstance(result.action, MergeAction)
        assert result.action.keep_id == 1
        deleted = sorted(c.args[0] for c in mock_store.delete_record.await_args_list)
        assert deleted == [2, 3]

    @pytest.mark.asyncio
    async def test_merge_rejects_keep_id_in_remove_ids(self, mock_store):
        coordinator = ResolutionCoordinator(mock_store)
        with pytest.raises(InvalidResolutionError):
            await coordinator.merge(1, [1, 2])
        mock_store.delete_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_merge_deduplicates_remove_ids(self, mock_store):
        coordinator = ResolutionCoordinator(mock_store)
        result = await coordinator.merge(1, [2, 2, 3])
        assert result.action.remove_ids == (2, 3)
        assert mock_store.delete_record.await_count == 2


class TestDeleteAll:

    @pytest.mark.asyncio
    async def test_delete_all_success(self, mock_store):
        coordinator = ResolutionCoordinator(mock_store)
        result = await coordinator.delete_all([1, 2])
        assert result.status is ResolutionStatus.SUCCESS
        assert isinstance(result.action, DeleteAllAction)
        assert sorted(result.succeeded_ids) == [1, 2]

    @pytest.mark.asyncio
    async def test_partial_failure_is_reported_not_raised(self):
        coordinator = ResolutionCoordinator(failing_store({2}))
        result = await coordinator.delete_all([1, 2])

        assert result.status is ResolutionStatus.PARTIAL_FAILURE
        assert result.succeeded_ids == [1]
        assert result.failed_ids == [2]
        assert "database locked" in result.failed[2]

    @pytest.mark.asyncio
    async def test_total_failure(self):
        coordinator = ResolutionCoordinator(failing_store({1, 2}))
        result = await coordinator.delete_all([1, 2])
        assert result.status is ResolutionStatus.FAILURE
        assert result.succeeded_ids == []
        assert sorted(result.failed_ids) == [1, 2]

    @pytest.mark.asyncio
    async def test_store_error_without_message_uses_type_name(self):
        store = Mock()
        store.delete_record = AsyncMock(side_effect=KeyError())
        result = await ResolutionCoordinator(store).delete_all([7])
        assert result.failed == {7: 'KeyError'}

    @pytest.mark.asyncio
    async def test_empty_batch(self, mock_store):
        result = await ResolutionCoordinator(mock_store).delete_all([])
        assert result.status is ResolutionStatus.SUCCESS
        assert result.succeeded_ids == []
        mock_store.delete_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_blocking_store_runs_in_thread(self):
        store = Mock()
        store.delete_record = Mock(side_effect=[True, RecordNotFoundError(9)])
        result = await ResolutionCoordinator(store).delete_all([8, 9])
        assert result.status is ResolutionStatus.PARTIAL_FAILURE
        assert store.delete_record.call_count == 2

    @pytest.mark.asyncio
    async def test_execute_dispatches_action(self, mock_store):
        coordinator = ResolutionCoordinator(mock_store)
        result = await coordinator.execute(DeleteAllAction(ids=[4, 5]))
        assert sorted(result.succeeded_ids) == [4, 5]


class TestRefreshSignal:

    @pytest.mark.asyncio
    async def test_refresh_called_on_success(self, mock_store):
        on_refresh = Mock()
        coordinator = ResolutionCoordinator(mock_store, on_refresh=on_refresh)
        result = await coordinator.delete_all([1])
        on_refresh.assert_called_once_with(result)

    @pytest.mark.asyncio
    async def test_async_refresh_called_on_failure(self):
        on_refresh = AsyncMock()
        coordinator = ResolutionCoordinator(failing_store({1}), on_refresh=on_refresh)
        result = await coordinator.delete_all([1])
        on_refresh.assert_awaited_once_with(result)

    @pytest.mark.asyncio
    async def test_refresh_error_does_not_escape(self, mock_store):
        on_refresh = Mock(side_effect=RuntimeError("ui gone"))
        coordinator = ResolutionCoordinator(mock_store, on_refresh=on_refresh)
        result = await coordinator.delete_all([1])
        assert result.is_success


class TestResolutionHistory:

    def test_empty_statistics(self, mock_store):
        stats = ResolutionCoordinator(mock_store).get_resolution_statistics()
        assert stats == {'total_resolutions': 0, 'records_deleted': 0, 'records_failed': 0}

    @pytest.mark.asyncio
    async def test_statistics_after_resolutions(self):
        coordinator = ResolutionCoordinator(failing_store({3}))
        await coordinator.merge(1, [2])
        await coordinator.delete_all([3, 4])

        stats = coordinator.get_resolution_statistics()
        assert stats['total_resolutions'] == 2
        assert stats['merges'] == 1
        assert stats['deletes'] == 1
        assert stats['records_deleted'] == 2
        assert stats['records_failed'] == 1
        assert stats['by_status'] == {'success': 1, 'partial_failure': 1, 'failure': 0}
        assert coordinator.resolution_history[0]['keep_id'] == 1

    @pytest.mark.asyncio
    async def test_result_to_dict(self):
        result = await ResolutionCoordinator(failing_store({2})).delete_all([1, 2])
        data = result.to_dict()
        assert data['status'] == 'partial_failure'
        assert data['succeeded_count'] == 1
        assert data['failed_count'] == 1
        assert data['action']['kind'] == 'delete_all'


class TestSurvivorSelection:

    def test_most_recently_updated_wins(self, make_record):
        group = DuplicateGroup(group_id=0, group_similarity=0.9, members=[
            make_record(1, "text", updated_at=100),
            make_record(2, "text", updated_at=200),
        ])
        assert suggest_survivor(group).id == 2

    def test_tags_then_content_break_ties(self, make_record):
        group = DuplicateGroup(group_id=0, group_similarity=0.9, members=[
            make_record(1, "short", updated_at=100),
            make_record(2, "short", updated_at=100, tags=['sql']),
            make_record(3, "longer text", updated_at=100, tags=['db']),
        ])
        assert suggest_survivor(group).id == 3

    def test_first_member_on_full_tie(self, hello_records):
        records = [r.model_copy(update={'content': 'same'}) for r in hello_records]
        group = build_groups(records)[0]
        assert suggest_survivor(group).id == 1

    def test_merged_tags(self, make_record):
        group = DuplicateGroup(group_id=0, group_similarity=0.9, members=[
            make_record(1, "x", tags=['git', 'cli']),
            make_record(2, "x", tags=['git', 'shell']),
        ])
        assert merged_tags(group, 1) == ['cli', 'git', 'shell']

    def test_merged_tags_rejects_non_member(self, hello_records):
        group = build_groups(hello_records)[0]
        with pytest.raises(InvalidResolutionError):
            merged_tags(group, 99)
