# platyplex/ui/__init__.py
"""User interface components for platyplex.

Provides:
- Console print utilities (separate from logging)
- Batch outcome display (text blocks, streamed JSON, run summary)
"""

from .prompts import (
    PromptStyle,
    ui_print,
    print_separator,
    print_success,
    print_warning,
    print_error,
)
from .batch_display import (
    JsonArrayStream,
    OutcomeReporter,
    display_run_summary,
    format_outcome,
)

__all__ = [
    "PromptStyle",
    # Print utilities
    "ui_print",
    "print_separator",
    "print_success",
    "print_warning",
    "print_error",
    # Batch display
    "JsonArrayStream",
    "OutcomeReporter",
    "display_run_summary",
    "format_outcome",
]
