"""Utility modules."""
from prep_api.utils.time_utils import format_remaining, utc_now
from prep_api.utils.validation import validate_slot, validate_subject

__all__ = [
    "format_remaining",
    "utc_now",
    "validate_slot",
    "validate_subject",
]
