"""
CLI script to update metadata (uri, name, symbol) of selected assets.

Exactly one selector applies: --owner, --creators or --mint-list.
"""

from __future__ import annotations

import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from platyplex.core.batch_input import load_target_list
from platyplex.core.cli_args import create_update_metadata_parser, ledger_overrides
from platyplex.core.execution_framework import AsyncBatchScript
from platyplex.core.models import BatchResult
from platyplex.core.selectors import TargetSelector
from platyplex.ledger.factory import create_ledger_context
from platyplex.operations.metadata import run_update_metadata


class UpdateMetadataScript(AsyncBatchScript):
    def __init__(self):
        super().__init__("update_metadata")

    def create_argument_parser(self) -> ArgumentParser:
        return create_update_metadata_parser()

    async def run_cli(self, args: Namespace) -> Optional[BatchResult]:
        mint_list = load_target_list(Path(args.mint_list)) if args.mint_list else None
        selector = TargetSelector.from_options(
            owner=args.owner, creators=args.creators, mint_list=mint_list
        )
        settings = self.build_settings(args)
        async with create_ledger_context(
            self.ledger_config, self.upload_config, ledger_overrides(args)
        ) as ctx:
            return await run_update_metadata(
                selector,
                ctx.ledger,
                settings,
                uri=args.uri,
                name=args.name,
                symbol=args.symbol,
                cancel_event=self.cancel_event,
            )


def main() -> None:
    """Main entry point."""
    UpdateMetadataScript().main()


if __name__ == "__main__":
    main()
