# --- Deduplication Tools ---
from .deduplication import (
    analyze_duplicates_tool, resolve_merge_tool, resolve_delete_tool,
    get_deduplication_stats_tool, get_similarity_stats_tool, format_group
)

# --- Error Responses ---
from .errors import DedupErrorCode, create_error_response, create_success_response, create_tool_error

__all__ = [
    'analyze_duplicates_tool', 'resolve_merge_tool', 'resolve_delete_tool',
    'get_deduplication_stats_tool', 'get_similarity_stats_tool', 'format_group',
    'DedupErrorCode', 'create_error_response', 'create_success_response', 'create_tool_error'
]
