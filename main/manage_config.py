"""
CLI script to list, get or set platyplex configuration values.

Names are dotted paths into the YAML file, e.g. ``ledger.env`` or
``retry.delay_ms``.
"""

from __future__ import annotations

import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from platyplex.core.cli_args import create_config_parser
from platyplex.core.execution_framework import AsyncBatchScript
from platyplex.core.models import BatchResult
from platyplex.operations.config_cmd import run_config


class ManageConfigScript(AsyncBatchScript):
    def __init__(self):
        super().__init__("config")

    def create_argument_parser(self) -> ArgumentParser:
        return create_config_parser()

    async def run_cli(self, args: Namespace) -> Optional[BatchResult]:
        run_config(self.config_service.loader, args.mode, args.name, args.value)
        return None


def main() -> None:
    """Main entry point."""
    ManageConfigScript().main()


if __name__ == "__main__":
    main()
