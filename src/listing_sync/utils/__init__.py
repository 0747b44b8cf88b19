"""Small shared helpers."""

from .numbers import parse_number

__all__ = ["parse_number"]
