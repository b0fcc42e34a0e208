"""
Exceptions
==========

Errors raised by the simplifier and the detail mapper.
"""


class InvalidGeometry(ValueError):
    """Raised for malformed mesh arrays and degenerate faces in strict mode."""


class NoCandidateTriangle(ValueError):
    """Raised when a point cannot be assigned to any proxy triangle."""
