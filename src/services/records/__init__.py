"""Init file for record submission services."""

from .controller import RecordSubmissionController
from .validation import validate


__all__ = [
    "RecordSubmissionController",
    "validate",
]
