"""Centralized constants used across the application.

Defines ledger environments, cache file conventions, retry defaults, and
process exit codes.
"""

from __future__ import annotations

# Ledger environments and their public RPC endpoints.
# An explicit rpc_url in the config (or --rpc-url) always wins over env.
LEDGER_ENVIRONMENTS = {
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
}
DEFAULT_ENVIRONMENT = "mainnet-beta"

# Cache file derived from the batch input path: drops.json -> drops-cache.json
DEFAULT_CACHE_SUFFIX = "-cache.json"

# Retry defaults (fixed delay between attempts, not exponential)
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_DELAY_MS = 2000
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0

# Content gateway used to render uploaded content addresses
DEFAULT_GATEWAY_URL = "https://arweave.net"

# JSON-RPC error code the funding gateway uses for an insufficient balance
INSUFFICIENT_FUNDS_ERROR_CODE = -32003

# Placeholder content address used when estimating manifest size
MANIFEST_PLACEHOLDER_ID = "artestaC_testsEaEmAGFtestEGtestmMGmgMGAV438"

# Process exit codes
EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2
EXIT_CANCELLED = 130

# Modes accepted by the config command
CONFIG_MODES = ("list", "get", "set")
