"""Application services."""

from .property_service import PropertyNotFoundError, PropertyService

__all__ = [
    "PropertyNotFoundError",
    "PropertyService",
]
