"""Testing utilities package.

Provides in-memory fakes of the ledger collaborators for automated testing.
"""

__all__ = [
    "FakeLedger",
    "FakePricing",
    "FakeFunder",
    "FakeContentStore",
    "no_sleep",
]
