"""CLI argument parsers for the entry-point scripts.

Every command shares the ledger connection options; batch commands also
share the cache, retry and output options.
"""

from __future__ import annotations

import argparse
from typing import Any, Dict

from platyplex.config.constants import CONFIG_MODES, LEDGER_ENVIRONMENTS


def add_connection_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        help="Path to the platyplex YAML config. Defaults to config/platyplex_config.yaml."
    )
    parser.add_argument(
        "--signer",
        type=str,
        help="Signer identity used for ledger operations. Overrides config."
    )
    parser.add_argument(
        "--rpc-url",
        type=str,
        help="Custom RPC server to use for operations. Overrides config."
    )
    parser.add_argument(
        "--env",
        choices=list(LEDGER_ENVIRONMENTS),
        help="Ledger environment. Overrides config. Ignored if --rpc-url is specified."
    )


def add_batch_options(parser: argparse.ArgumentParser, *, allow_append: bool = False) -> None:
    """Cache, retry and output options shared by the batch commands."""
    cache_group = parser.add_mutually_exclusive_group()
    cache_group.add_argument(
        "--retry-cache",
        type=str,
        help="Cache file used to resume in an idempotent manner."
    )
    cache_group.add_argument(
        "--no-cache",
        action="store_true",
        help="Do not read or write a cache file."
    )
    parser.add_argument(
        "--no-retry",
        action="store_true",
        help="Do not retry on failure (one attempt per item)."
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as a JSON array."
    )
    if allow_append:
        parser.add_argument(
            "--append",
            type=str,
            metavar="FILE",
            help="Append results to FILE (text blocks, or merged into a JSON array with --json)."
        )


def ledger_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """CLI values that override the ``ledger`` config section."""
    return {
        "signer": getattr(args, "signer", None),
        "rpc_url": getattr(args, "rpc_url", None),
        "env": getattr(args, "env", None),
    }


def create_airdrop_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Transfer each asset in a JSON list to its destination.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Airdrop with the default cache (drops-cache.json next to drops.json)
  python main/airdrop.py drops.json

  # Use an explicit cache file and print JSON
  python main/airdrop.py drops.json --retry-cache runs/drops.cache.json --json
        """
    )
    parser.add_argument(
        "input",
        type=str,
        help='JSON file of the form [{"mint": "<asset>", "to": "<address>"}, ...]'
    )
    add_connection_options(parser)
    add_batch_options(parser)
    return parser


def create_transfer_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Transfer one or more assets to a single recipient."
    )
    parser.add_argument("recipient", type=str, help="Recipient address.")
    parser.add_argument(
        "--mints", "-m",
        nargs="+",
        required=True,
        help="Asset(s) to transfer."
    )
    add_connection_options(parser)
    add_batch_options(parser)
    return parser


def create_mint_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Mint one asset per metadata URI.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main/mint.py https://arweave.net/abc https://arweave.net/def --json
  python main/mint.py --json-list uris.json --append minted.txt
        """
    )
    parser.add_argument("targets", nargs="*", help="Metadata URI(s).")
    parser.add_argument(
        "--json-list",
        type=str,
        help="A JSON list of URIs to mint."
    )
    add_connection_options(parser)
    add_batch_options(parser, allow_append=True)
    return parser


def create_upload_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fund storage and upload files or directories to the content store."
    )
    parser.add_argument("files", nargs="+", help="Files or directories to upload.")
    add_connection_options(parser)
    add_batch_options(parser)
    return parser


def create_update_metadata_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Update metadata of every asset matched by one selector."
    )
    selector = parser.add_mutually_exclusive_group(required=True)
    selector.add_argument("--owner", type=str, help="Select assets held by this address.")
    selector.add_argument("--creators", nargs="+", help="Select assets by creator address(es).")
    selector.add_argument("--mint-list", type=str, help="JSON list of asset ids.")
    parser.add_argument("--uri", type=str, help="New metadata URI.")
    parser.add_argument("--name", type=str, help="New name.")
    parser.add_argument("--symbol", type=str, help="New symbol.")
    add_connection_options(parser)
    add_batch_options(parser)
    return parser


def create_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="List, get or set values in the platyplex config (dotted names, e.g. ledger.env)."
    )
    parser.add_argument("mode", nargs="?", choices=CONFIG_MODES, default="list", help="list, get or set")
    parser.add_argument("name", nargs="?", help="Config name")
    parser.add_argument("value", nargs="?", help="Config value")
    parser.add_argument("--config", type=str, help="Path to the platyplex YAML config.")
    return parser
