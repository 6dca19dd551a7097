"""Synchronous validation of a draft record.

Rules run in order and the first failure wins:

1. phone number is exactly ten ASCII digits (no separators, no country code)
2. a record type is selected
3. the trimmed content is at least ``MIN_CONTENT_LENGTH`` characters, counted
   as Unicode code points (an emoji counts once)

Anything else is accepted as-is; there is no upper bound on content size.
"""

from __future__ import annotations

import re

from schemas.records import RecordType
from services.records.exceptions import RecordValidationError
from services.records.models import DraftRecord, Invalid, Valid, ValidationResult


MIN_CONTENT_LENGTH = 10

# `\d` would also accept non-ASCII digits and `$` a trailing newline
PHONE_NUMBER_RE = re.compile(r"[0-9]{10}")

INVALID_PHONE_NUMBER = "Please enter a valid 10-digit phone number"
MISSING_RECORD_TYPE = "Please select a record type"
CONTENT_TOO_SHORT = "Patient data too short. Please provide more information"

_KNOWN_RECORD_TYPES = frozenset(rt.value for rt in RecordType)


def validate(draft: DraftRecord, *, strict_record_types: bool = False) -> ValidationResult:
    """Validate ``draft`` without side effects.

    With ``strict_record_types`` a record type that is not one of the
    selector values is rejected like a missing one.
    """
    if PHONE_NUMBER_RE.fullmatch(draft.phone_number) is None:
        return Invalid(INVALID_PHONE_NUMBER)

    if not draft.record_type:
        return Invalid(MISSING_RECORD_TYPE)
    if strict_record_types and draft.record_type not in _KNOWN_RECORD_TYPES:
        return Invalid(MISSING_RECORD_TYPE)

    if len(draft.content.strip()) < MIN_CONTENT_LENGTH:
        return Invalid(CONTENT_TOO_SHORT)

    return Valid()


def ensure_valid(draft: DraftRecord, *, strict_record_types: bool = False) -> None:
    """Raise :class:`RecordValidationError` when ``draft`` does not validate."""
    result = validate(draft, strict_record_types=strict_record_types)
    if isinstance(result, Invalid):
        raise RecordValidationError(result.reason)
