from enum import Enum
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


RecordId = Union[int, str]


class TextRecord(BaseModel):
    """Read-only snapshot of a snippet owned by the external store."""
    model_config = ConfigDict(frozen=True)

    id: RecordId
    name: str = ""
    content: str = ""
    description: Optional[str] = None
    tags: FrozenSet[str] = frozenset()
    created_at: int = 0
    updated_at: int = 0

    @field_validator('tags', mode='before')
    @classmethod
    def _none_tags(cls, value: Any) -> Any:
        return frozenset() if value is None else value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TextRecord":
        """Build a record from a store row, accepting camelCase timestamps."""
        return cls(
            id=data['id'],
            name=data.get('name') or "",
            content=data.get('content') or "",
            description=data.get('description'),
            tags=data.get('tags'),
            created_at=data.get('created_at', data.get('createdAt', 0)),
            updated_at=data.get('updated_at', data.get('updatedAt', 0)),
        )


class SimilarityScore(BaseModel):
    """Similarity between two records, computed fresh for every run."""
    model_config = ConfigDict(frozen=True)

    record_a_id: RecordId
    record_b_id: RecordId
    content_similarity: float
    name_similarity: float
    weighted: float


class DuplicateGroup(BaseModel):
    """Records grouped under one leader during a single analysis run."""
    model_config = ConfigDict(frozen=True)

    group_id: int
    members: Tuple[TextRecord, ...] = Field(min_length=2)
    group_similarity: float
    member_scores: Dict[RecordId, float] = Field(default_factory=dict)

    @property
    def leader(self) -> TextRecord:
        return self.members[0]

    @property
    def member_ids(self) -> List[RecordId]:
        return [record.id for record in self.members]

    def get_member(self, record_id: RecordId) -> Optional[TextRecord]:
        for record in self.members:
            if record.id == record_id:
                return record
        return None


def _unique_ids(value: Any) -> Any:
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(dict.fromkeys(value))
    return value


class MergeAction(BaseModel):
    """Keep one record of a group and delete the rest."""
    model_config = ConfigDict(frozen=True)

    kind: Literal['merge'] = 'merge'
    keep_id: RecordId
    remove_ids: Tuple[RecordId, ...]

    @field_validator('remove_ids', mode='before')
    @classmethod
    def _dedupe_remove_ids(cls, value: Any) -> Any:
        return _unique_ids(value)


class DeleteAllAction(BaseModel):
    """Delete every record of a group."""
    model_config = ConfigDict(frozen=True)

    kind: Literal['delete_all'] = 'delete_all'
    ids: Tuple[RecordId, ...]

    @field_validator('ids', mode='before')
    @classmethod
    def _dedupe_ids(cls, value: Any) -> Any:
        return _unique_ids(value)


ResolutionAction = Annotated[Union[MergeAction, DeleteAllAction], Field(discriminator='kind')]


class ResolutionStatus(Enum):
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FAILURE = "failure"


class ResolutionResult(BaseModel):
    """Outcome of one batch of delete requests. Successes are never rolled back."""

    status: ResolutionStatus
    action: ResolutionAction
    succeeded_ids: List[RecordId] = Field(default_factory=list)
    failed: Dict[RecordId, str] = Field(default_factory=dict)
    processing_time: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.status is ResolutionStatus.SUCCESS

    @property
    def failed_ids(self) -> List[RecordId]:
        return list(self.failed.keys())

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump()
        data['status'] = self.status.value
        data['succeeded_count'] = len(self.succeeded_ids)
        data['failed_count'] = len(self.failed)
        return data


class ClusterResult(BaseModel):
    """Groups produced by one clustering pass plus the pair scores it computed."""

    groups: List[DuplicateGroup] = Field(default_factory=list)
    pair_scores: List[SimilarityScore] = Field(default_factory=list)
    threshold: float
    records_processed: int = 0
    comparisons: int = 0
    processing_time: float = 0.0
