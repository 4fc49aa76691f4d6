"""Core batch engine package.

Submodules:
- errors: Error taxonomy (fatal vs per-item vs network errors)
- models: OperationItem, CacheRecord, RetryPolicy, BatchResult, FundingPlan
- cache_store: Durable idempotency cache (CacheStore, load_cache, persist_cache)
- retry: Bounded fixed-delay retry (RetrySubmitter)
- batch_runner: Sequential resumable execution (ResumableBatchRunner)
- funding: Storage cost estimation and funding (plan_and_fund)
- batch_input: Batch input loading and validation
- selectors: TargetSelector tagged variant
- settings: BatchSettings built from config + CLI overrides
- cli_args: CLI argument parsers
- execution_framework: AsyncBatchScript base class for entry points

Note: To avoid circular imports, use direct imports from submodules:
    from platyplex.core.batch_runner import ResumableBatchRunner
    from platyplex.core.cache_store import CacheStore
"""
