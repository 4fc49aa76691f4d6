"""
CLI script to mint one asset per metadata URI.

Targets come from positional URIs and/or a ``--json-list`` file. Results are
printed per item as they complete (``--json`` streams a JSON array;
``--append FILE`` also records them in FILE).
"""

from __future__ import annotations

import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from platyplex.core.cli_args import create_mint_parser, ledger_overrides
from platyplex.core.execution_framework import AsyncBatchScript
from platyplex.core.models import BatchResult
from platyplex.ledger.factory import create_ledger_context
from platyplex.operations.mint import run_mint


class MintScript(AsyncBatchScript):
    """Script to mint assets from metadata URIs."""

    def __init__(self):
        super().__init__("mint")

    def create_argument_parser(self) -> ArgumentParser:
        return create_mint_parser()

    async def run_cli(self, args: Namespace) -> Optional[BatchResult]:
        settings = self.build_settings(args)
        json_list = Path(args.json_list) if args.json_list else None
        async with create_ledger_context(
            self.ledger_config, self.upload_config, ledger_overrides(args)
        ) as ctx:
            return await run_mint(
                args.targets,
                ctx.ledger,
                ctx.content,
                settings,
                json_list=json_list,
                cancel_event=self.cancel_event,
            )


def main() -> None:
    """Main entry point."""
    MintScript().main()


if __name__ == "__main__":
    main()
