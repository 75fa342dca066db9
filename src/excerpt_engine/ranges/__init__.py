"""Line-range tracking: range sets, edit translation, and content caching."""

from .errors import (
    DocumentUnavailableError,
    ExcerptEngineError,
    MalformedSnapshotError,
    NotFoundError,
    OverlapError,
    PersistenceError,
)
from .models import (
    CollapsePolicy,
    EditDescription,
    FileKey,
    LineRange,
    LineSpan,
    SelectionPolicy,
    spans_overlap,
)
from .range_set import RangeSet
from .snapshot_cache import TextSnapshotCache, TextSource
from .translator import EditTranslator, TranslationReport

__all__ = [
    "CollapsePolicy",
    "DocumentUnavailableError",
    "EditDescription",
    "EditTranslator",
    "ExcerptEngineError",
    "FileKey",
    "LineRange",
    "LineSpan",
    "MalformedSnapshotError",
    "NotFoundError",
    "OverlapError",
    "PersistenceError",
    "RangeSet",
    "SelectionPolicy",
    "TextSnapshotCache",
    "TextSource",
    "TranslationReport",
    "spans_overlap",
]
