"""Infrastructure utilities package.

Provides logging and progress tracking.
"""

# Avoid circular imports - use direct imports instead of re-exporting
__all__ = [
    "setup_logger",
    "ProgressState",
    "ProgressTracker",
]
