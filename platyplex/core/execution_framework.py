"""
Execution framework for the async command scripts.

This module provides the base class shared by every entry point in
``main/``: configuration loading, graceful-shutdown signal handling,
``asyncio.run``, and the mapping of run outcomes to process exit codes.

Classes:
    AsyncBatchScript: Base class for async batch commands
"""

from __future__ import annotations

import asyncio
import signal
import sys
from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Any, Dict, List, Optional

from platyplex.config.constants import (
    EXIT_CANCELLED,
    EXIT_FATAL,
    EXIT_OK,
    EXIT_PARTIAL_FAILURE,
)
from platyplex.config.service import ConfigService, get_config_service
from platyplex.core.errors import FatalError
from platyplex.core.models import BatchResult
from platyplex.core.settings import BatchSettings
from platyplex.infra.logger import setup_logger
from platyplex.ui.prompts import print_error, print_warning


def exit_code_for(result: Optional[BatchResult]) -> int:
    """Cancelled runs exit 130, runs with failed items exit 2, otherwise 0."""
    if result is None:
        return EXIT_OK
    if result.cancelled:
        return EXIT_CANCELLED
    if result.has_failures:
        return EXIT_PARTIAL_FAILURE
    return EXIT_OK


class AsyncBatchScript(ABC):
    """
    Base class for async command scripts.

    This class handles:
    - Argument parsing
    - Configuration loading (``--config`` or the default file)
    - Cooperative cancellation on SIGINT/SIGTERM
    - Async execution via asyncio.run()
    - Exit codes: 0 ok, 1 fatal, 2 partial failure, 130 cancelled

    Subclasses must implement:
    - create_argument_parser(): Return configured ArgumentParser
    - run_cli(): Execute the command; return the BatchResult (or None)
    """

    def __init__(self, script_name: str):
        self.script_name = script_name
        self.logger = setup_logger(script_name)
        self.config_service: Optional[ConfigService] = None
        self.cancel_event: Optional[asyncio.Event] = None
        self._signal_count = 0

        # Configuration dictionaries (loaded on demand)
        self.general_config: Dict[str, Any] = {}
        self.ledger_config: Dict[str, Any] = {}
        self.retry_config: Dict[str, Any] = {}
        self.upload_config: Dict[str, Any] = {}

    def initialize_config(self, config_path: Optional[str] = None) -> None:
        """Load all configuration sections."""
        self.config_service = get_config_service()
        if config_path:
            self.config_service.load(Path(config_path))
        self.general_config = self.config_service.get_general_config()
        self.ledger_config = self.config_service.get_ledger_config()
        self.retry_config = self.config_service.get_retry_config()
        self.upload_config = self.config_service.get_upload_config()

    def build_settings(self, args: Namespace) -> BatchSettings:
        return BatchSettings.from_config(
            self.general_config,
            self.ledger_config,
            self.retry_config,
            self.upload_config,
            args,
        )

    @abstractmethod
    def create_argument_parser(self) -> ArgumentParser:
        pass

    @abstractmethod
    async def run_cli(self, args: Namespace) -> Optional[BatchResult]:
        """
        Execute the command with parsed arguments.

        Args:
            args: Parsed command-line arguments

        Returns:
            The batch result for batch commands, None otherwise.
        """
        pass

    def setup_signal_handlers(self) -> Dict[int, Any]:
        """Register SIGINT/SIGTERM handlers for graceful shutdown.

        First signal sets the cancel event (the current item finishes).
        Second signal forces immediate exit.
        """
        self._signal_count = 0

        def _handler(signum: int, frame: Any) -> None:
            self._signal_count += 1
            if self._signal_count == 1:
                self.logger.warning("Graceful shutdown initiated, finishing the current item...")
                print_warning("Stopping after the current item (press Ctrl+C again to force).")
                if self.cancel_event is not None:
                    self.cancel_event.set()
            else:
                self.logger.warning("Forced shutdown. Exiting immediately.")
                raise SystemExit(EXIT_CANCELLED)

        previous: Dict[int, Any] = {}
        try:
            for sig in (signal.SIGINT, signal.SIGTERM):
                previous[sig] = signal.signal(sig, _handler)
        except (OSError, ValueError):
            # signal handlers can only be set in main thread
            self.logger.debug("Could not set signal handlers (not main thread)")
        return previous

    @staticmethod
    def restore_signal_handlers(previous: Dict[int, Any]) -> None:
        for sig, handler in previous.items():
            try:
                signal.signal(sig, handler)
            except (OSError, ValueError):
                pass

    async def _run(self, args: Namespace) -> Optional[BatchResult]:
        self.cancel_event = asyncio.Event()
        previous = self.setup_signal_handlers()
        try:
            return await self.run_cli(args)
        finally:
            self.restore_signal_handlers(previous)

    def execute(self, argv: Optional[List[str]] = None) -> int:
        """
        Parse arguments, load configuration, run the command and return the exit code.
        """
        parser = self.create_argument_parser()
        args = parser.parse_args(argv)
        try:
            self.initialize_config(getattr(args, "config", None))
        except (FileNotFoundError, ValueError) as e:
            print_error(f"Configuration error: {e}")
            self.logger.error(f"{self.script_name} configuration error: {e}")
            return EXIT_FATAL

        try:
            self.logger.info(f"Starting {self.script_name}")
            result = asyncio.run(self._run(args))
        except KeyboardInterrupt:
            print_warning("Operation cancelled by user.")
            self.logger.info(f"{self.script_name} cancelled by user")
            return EXIT_CANCELLED
        except FatalError as e:
            print_error(str(e))
            self.logger.error(f"{self.script_name} aborted: {e}")
            return EXIT_FATAL
        except Exception as e:
            print_error(f"Unexpected error: {e}")
            self.logger.error(f"{self.script_name} failed", exc_info=e)
            return EXIT_FATAL

        code = exit_code_for(result)
        self.logger.info(f"{self.script_name} finished with exit code {code}")
        return code

    def main(self, argv: Optional[List[str]] = None) -> None:
        sys.exit(self.execute(argv))
