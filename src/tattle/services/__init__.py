"""Reporter services."""

from .reporter import REPORT_LABEL, TransactionReporter
from .tracker import BackgroundWorkTracker, CompletionTracker, WorkToken, release_when_done

__all__ = [
    "BackgroundWorkTracker",
    "CompletionTracker",
    "REPORT_LABEL",
    "TransactionReporter",
    "WorkToken",
    "release_when_done",
]
