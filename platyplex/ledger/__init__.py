"""Remote ledger collaborators.

Submodules:
- base: Abstract interfaces (LedgerClient, PricingOracle, WalletFunder, ContentStore)
- http_client: aiohttp JSON-RPC adapters
- factory: LedgerContext and create_ledger_context
"""
