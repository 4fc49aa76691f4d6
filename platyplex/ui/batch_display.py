"""Batch result display utilities.

Per-item output is produced as soon as each item settles, either as a
human-readable block or as one element of a JSON array streamed to stdout.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from platyplex.core.batch_input import load_json, save_json
from platyplex.core.errors import ValidationError
from platyplex.core.models import BatchResult, ItemOutcome, ItemStatus
from platyplex.infra.logger import setup_logger
from platyplex.ui.prompts import (
    PromptStyle,
    print_error,
    print_separator,
    print_success,
    print_warning,
    ui_print,
)

logger = setup_logger(__name__)


def format_outcome(outcome: ItemOutcome) -> str:
    """Render one outcome as the text block used on the console and in ``--append`` files."""
    if outcome.status == ItemStatus.FAILED:
        return f"[error]  {outcome.error} {outcome.identity} "
    if outcome.status == ItemStatus.CANCELLED:
        return f"[cancelled] {outcome.identity} (not started)"
    if outcome.status == ItemStatus.SKIPPED:
        return f"[skipped] {outcome.identity} already completed (txId: {outcome.transaction_id})"

    title = outcome.details.get("name") or outcome.identity
    lines = [f"[success] {title}", f"  target: {outcome.identity}"]
    for key, value in outcome.details.items():
        if key != "name":
            lines.append(f"  {key}: {value}")
    if outcome.destination:
        lines.append(f"  to: {outcome.destination}")
    lines.append(f"  txId: {outcome.transaction_id}")
    return "\n".join(lines) + "\n"


def _style_for(outcome: ItemOutcome) -> str:
    return {
        ItemStatus.SUCCEEDED: PromptStyle.SUCCESS,
        ItemStatus.SKIPPED: PromptStyle.DIM,
        ItemStatus.FAILED: PromptStyle.ERROR,
        ItemStatus.CANCELLED: PromptStyle.WARNING,
    }[outcome.status]


class JsonArrayStream:
    """Print a JSON array incrementally: ``[``, each element as it arrives, ``]``."""

    def __init__(self, stream=None) -> None:
        self._stream = stream
        self._count = 0
        self._open = False

    @property
    def stream(self):
        return self._stream or sys.stdout

    def open(self) -> None:
        if not self._open:
            print("[", file=self.stream, flush=True)
            self._open = True

    def write(self, obj: Dict[str, Any]) -> None:
        self.open()
        prefix = "," if self._count else ""
        print(prefix + json.dumps(obj, indent=2), file=self.stream, flush=True)
        self._count += 1

    def close(self) -> None:
        self.open()
        print("]", file=self.stream, flush=True)
        self._open = False


class OutcomeReporter:
    """Streams item outcomes in the selected output mode.

    Modes:
        text: a block per item on stdout.
        json: an incrementally printed JSON array on stdout.
        text + append: a block per item, also appended to the append file.
        json + append: a block per item on stdout; on close, the outcome
            objects are merged into the JSON array stored in the append file.
    """

    def __init__(self, json_mode: bool = False, append_path: Optional[Path] = None) -> None:
        self.json_mode = json_mode
        self.append_path = Path(append_path) if append_path else None
        self._collected: List[Dict[str, Any]] = []
        self._json_stream = JsonArrayStream() if json_mode and not self.append_path else None

    def start(self) -> None:
        if self._json_stream is not None:
            self._json_stream.open()

    async def __call__(self, index: int, outcome: ItemOutcome) -> None:
        if self._json_stream is not None:
            self._json_stream.write(outcome.to_output_dict())
            return
        text = format_outcome(outcome)
        ui_print(text, _style_for(outcome))
        if self.append_path is None:
            return
        if self.json_mode:
            self._collected.append(outcome.to_output_dict())
        else:
            with self.append_path.open("a", encoding="utf-8") as f:
                f.write(text + "\n")

    def finish(self) -> None:
        if self._json_stream is not None:
            self._json_stream.close()
        if self.json_mode and self.append_path is not None:
            existing: Any = []
            if self.append_path.exists():
                try:
                    existing = load_json(self.append_path)
                except ValidationError as e:
                    logger.warning("Could not read %s (%s); replacing it", self.append_path, e)
                    existing = []
                if not isinstance(existing, list):
                    logger.warning("%s does not hold a JSON array; replacing it", self.append_path)
                    existing = []
            save_json(self.append_path, existing + self._collected)


def display_run_summary(result: BatchResult, json_mode: bool = False) -> None:
    """Print the final counts (as a JSON object on stderr in JSON mode)."""
    summary = result.summary_dict()
    if json_mode:
        print(json.dumps({"summary": summary}), file=sys.stderr, flush=True)
        return

    ui_print("")
    print_separator(PromptStyle.DOUBLE_LINE)
    ui_print(
        f"  Processed: {summary['processed']} | Skipped (already done): {summary['skipped']} "
        f"| Failed: {summary['failed']} | Not started: {summary['cancelled']}",
        PromptStyle.HIGHLIGHT,
    )
    print_separator(PromptStyle.DOUBLE_LINE)
    if result.cancelled:
        print_warning(f"Run cancelled; {result.not_started} item(s) were not started. Re-run to resume.")
    if result.has_failures:
        print_error(f"Completed with {result.error_count} errors")
    else:
        print_success("Completed with 0 errors")
