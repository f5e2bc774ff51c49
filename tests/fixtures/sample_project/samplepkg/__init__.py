"""Sample package used by the eyeball test-suite."""

from .shapes import Circle, area

__all__ = ["Circle", "area"]
