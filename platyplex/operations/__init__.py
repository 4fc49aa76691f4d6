"""Operational orchestration modules.

High-level operations used by the entry-point scripts. Each one validates
its input up front, builds the batch items, and hands them to the resumable
batch runner. The scripts in `main/` import and delegate to these modules,
keeping the CLI layers thin.
"""

# Avoid circular imports - use direct imports instead of re-exporting
__all__ = [
    "run_airdrop",
    "run_transfer",
    "run_mint",
    "run_upload",
    "run_update_metadata",
    "run_config",
]
