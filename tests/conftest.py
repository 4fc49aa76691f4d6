"""Pytest configuration and shared fixtures for platyplex tests.

This module provides reusable fixtures for:
- Configuration management
- Temporary file/directory creation
- In-memory fakes of the ledger collaborators
- Sample batch input data
"""

from __future__ import annotations

import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
import yaml

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
import sys
sys.path.insert(0, str(PROJECT_ROOT))

from platyplex.config.service import ConfigService
from platyplex.core.models import RetryPolicy
from platyplex.core.retry import RetrySubmitter
from platyplex.core.settings import BatchSettings
from platyplex.testing.fakes import ADDR_A, ADDR_B, ADDR_C, no_sleep


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def mock_general_config() -> Dict[str, Any]:
    return {"logs_dir": "logs", "cache_suffix": "-cache.json"}


@pytest.fixture
def mock_ledger_config() -> Dict[str, Any]:
    return {
        "env": "devnet",
        "rpc_url": None,
        "signer": "signer-1",
        "owner_address": None,
        "request_timeout_seconds": 5,
    }


@pytest.fixture
def mock_retry_config() -> Dict[str, Any]:
    return {"enabled": True, "max_attempts": 5, "delay_ms": 0, "attempt_timeout_seconds": None}


@pytest.fixture
def mock_upload_config() -> Dict[str, Any]:
    return {"upload_url": None, "gateway_url": "https://gateway.test/"}


@pytest.fixture
def config_file(temp_dir: Path, mock_ledger_config: Dict[str, Any]) -> Path:
    """Write a minimal YAML config into the temp directory."""
    path = temp_dir / "platyplex_config.yaml"
    data = {
        "general": {"logs_dir": str(temp_dir / "logs")},
        "ledger": dict(mock_ledger_config),
        "retry": {"max_attempts": 3, "delay_ms": 0},
    }
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


@pytest.fixture
def reset_config_service() -> Generator[None, None, None]:
    """Reset the ConfigService singleton around a test."""
    ConfigService.reset()
    yield
    ConfigService.reset()


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


# =============================================================================
# Batch Fixtures
# =============================================================================

@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Five attempts with no delay between them."""
    return RetryPolicy(max_attempts=5, delay_ms=0)


@pytest.fixture
def submitter(fast_policy: RetryPolicy) -> RetrySubmitter:
    return RetrySubmitter(fast_policy, sleep=no_sleep)


@pytest.fixture
def settings(fast_policy: RetryPolicy) -> BatchSettings:
    return BatchSettings(retry_policy=fast_policy, gateway_url="https://gateway.test")


@pytest.fixture
def airdrop_file(temp_dir: Path) -> Path:
    """Three-item airdrop input file."""
    path = temp_dir / "drops.json"
    path.write_text(
        json.dumps([
            {"mint": "M1", "to": ADDR_A},
            {"mint": "M2", "to": ADDR_B},
            {"mint": "M3", "to": ADDR_C},
        ]),
        encoding="utf-8",
    )
    return path


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
