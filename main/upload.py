"""
CLI script to upload files or directories to the content store.

Storage for all files is priced and funded once before the first upload.
"""

from __future__ import annotations

import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from platyplex.core.cli_args import create_upload_parser, ledger_overrides
from platyplex.core.execution_framework import AsyncBatchScript
from platyplex.core.models import BatchResult
from platyplex.ledger.factory import create_ledger_context
from platyplex.operations.upload import run_upload


class UploadScript(AsyncBatchScript):
    def __init__(self):
        super().__init__("upload")

    def create_argument_parser(self) -> ArgumentParser:
        return create_upload_parser()

    async def run_cli(self, args: Namespace) -> Optional[BatchResult]:
        settings = self.build_settings(args)
        async with create_ledger_context(
            self.ledger_config, self.upload_config, ledger_overrides(args)
        ) as ctx:
            return await run_upload(
                args.files,
                ctx.content,
                ctx.pricing,
                ctx.funder,
                settings,
                cancel_event=self.cancel_event,
            )


def main() -> None:
    """Main entry point."""
    UploadScript().main()


if __name__ == "__main__":
    main()
