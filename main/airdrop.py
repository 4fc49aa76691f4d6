"""
CLI script to airdrop assets listed in a JSON file.

Each entry transfers one unit of ``mint`` to ``to``. Completed transfers are
recorded in a retry cache (``<input>-cache.json`` by default), so re-running
the same command after a crash or partial failure only sends what is missing.
"""

from __future__ import annotations

import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from platyplex.core.cli_args import create_airdrop_parser, ledger_overrides
from platyplex.core.execution_framework import AsyncBatchScript
from platyplex.core.models import BatchResult
from platyplex.ledger.factory import create_ledger_context
from platyplex.operations.airdrop import run_airdrop


class AirdropScript(AsyncBatchScript):
    """Script to transfer assets to per-item destinations."""

    def __init__(self):
        super().__init__("airdrop")

    def create_argument_parser(self) -> ArgumentParser:
        return create_airdrop_parser()

    async def run_cli(self, args: Namespace) -> Optional[BatchResult]:
        settings = self.build_settings(args)
        async with create_ledger_context(
            self.ledger_config, self.upload_config, ledger_overrides(args)
        ) as ctx:
            return await run_airdrop(
                Path(args.input), ctx.ledger, settings, cancel_event=self.cancel_event
            )


def main() -> None:
    """Main entry point."""
    AirdropScript().main()


if __name__ == "__main__":
    main()
