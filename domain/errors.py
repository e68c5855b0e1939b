"""Root of the domain error hierarchy.

Every fatal error carries the pipeline stage that raised it so the
application layer can report where a run stopped.
"""

from __future__ import annotations


class ColumnAreasError(Exception):
    """Base error for all column-area operations."""

    stage: str = "unknown"
