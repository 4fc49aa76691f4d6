"""platyplex package.

Batch ledger operations from the command line:
- Configuration management
- Resumable batch engine (cache store, retry submitter, batch runner, funding)
- Ledger collaborators (JSON-RPC over aiohttp)
- Operations (airdrop, transfer, mint, upload, update-metadata, config)
- User interface components
"""

__version__ = "0.3.0"
