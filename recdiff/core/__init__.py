"""Record matching and comparison engine."""

from .comparer import Comparer
from .comparator import ChangeRecord, Classification, RecordComparator
from .headers import HeaderReconciler, ReconciledHeaders
from .keyed import DuplicateAnchor, KeyedRecords, KeyedSource
from .strategies import InMemoryHashJoin, JoinStrategy, StreamingHashJoin
from .sort_merge import SortMergeJoin
from .tally import RunTally
from .transforms import TransformEngine, TransformRule, TransformRuleSet

__all__ = [
    "Comparer",
    "ChangeRecord",
    "Classification",
    "RecordComparator",
    "HeaderReconciler",
    "ReconciledHeaders",
    "DuplicateAnchor",
    "KeyedRecords",
    "KeyedSource",
    "InMemoryHashJoin",
    "JoinStrategy",
    "StreamingHashJoin",
    "SortMergeJoin",
    "RunTally",
    "TransformEngine",
    "TransformRule",
    "TransformRuleSet",
]
