"""Listing form decoding."""

from .decoder import FieldCoercion, PathKeyDecoder
from .intake import StoredDocuments, SubmissionError, build_property_from_form, generate_listing_id

__all__ = [
    "FieldCoercion",
    "PathKeyDecoder",
    "StoredDocuments",
    "SubmissionError",
    "build_property_from_form",
    "generate_listing_id",
]
