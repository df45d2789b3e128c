"""Document lifecycle: revision history, review aggregation and generation orchestration."""

from firm_docs.lifecycle.engine import DocumentLifecycleEngine, create_engine
from firm_docs.lifecycle.review import ReviewAggregator, aggregate_status
from firm_docs.lifecycle.versions import VersionStore

__all__ = [
    "DocumentLifecycleEngine",
    "ReviewAggregator",
    "VersionStore",
    "aggregate_status",
    "create_engine",
]
