"""Unit tests for the batch commands in platyplex/operations/.

Each command runs end to end against in-memory ledger fakes.
"""

from __future__ import annotations

import asyncio
import json

import pytest
import yaml

from platyplex.config.config_loader import ConfigLoader
from platyplex.core.cache_store import load_cache
from platyplex.core.errors import FatalError, TransientNetworkError, ValidationError
from platyplex.core.models import ItemStatus
from platyplex.core.selectors import TargetSelector
from platyplex.core.settings import BatchSettings
from platyplex.operations.airdrop import run_airdrop
from platyplex.operations.config_cmd import run_config
from platyplex.operations.metadata import build_changes, run_update_metadata
from platyplex.operations.mint import collect_targets, run_mint, validate_metadata
from platyplex.operations.transfer import run_transfer
from platyplex.operations.upload import build_upload_items, run_upload
from platyplex.testing.fakes import (
    ADDR_A,
    ADDR_B,
    FakeContentStore,
    FakeFunder,
    FakeLedger,
    FakePricing,
)


# =============================================================================
# Airdrop
# =============================================================================

@pytest.mark.asyncio
class TestAirdrop:
    @pytest.mark.unit
    async def test_writes_default_cache_next_to_input(self, airdrop_file, settings, submitter):
        ledger = FakeLedger()
        result = await run_airdrop(airdrop_file, ledger, settings, submitter=submitter)

        assert result.succeeded == 3
        cache = load_cache(airdrop_file.with_name("drops-cache.json"))
        assert set(cache) == {"M1", "M2", "M3"}
        assert cache["M1"].destination == ADDR_A
        assert [c["to"] for c in ledger.calls][:2] == [ADDR_A, ADDR_B]
        assert ledger.calls[0] == {"type": "transfer", "asset": "M1", "to": ADDR_A, "amount": 1}

    @pytest.mark.unit
    async def test_rerun_submits_nothing(self, airdrop_file, settings, submitter):
        await run_airdrop(airdrop_file, FakeLedger(), settings, submitter=submitter)
        ledger = FakeLedger()
        result = await run_airdrop(airdrop_file, ledger, settings, submitter=submitter)
        assert ledger.calls == []
        assert result.skipped == 3

    @pytest.mark.unit
    async def test_no_cache_writes_nothing(self, airdrop_file, fast_policy, submitter):
        settings = BatchSettings(retry_policy=fast_policy, use_cache=False)
        await run_airdrop(airdrop_file, FakeLedger(), settings, submitter=submitter)
        assert not airdrop_file.with_name("drops-cache.json").exists()

    @pytest.mark.unit
    async def test_invalid_input_submits_nothing(self, temp_dir, settings, submitter):
        path = temp_dir / "drops.json"
        path.write_text(json.dumps([{"mint": "M1", "to": ADDR_A}, {"mint": "M2"}]))
        ledger = FakeLedger()
        with pytest.raises(ValidationError):
            await run_airdrop(path, ledger, settings, submitter=submitter)
        assert ledger.calls == []

    @pytest.mark.unit
    async def test_corrupt_cache_is_fatal(self, airdrop_file, settings, submitter):
        airdrop_file.with_name("drops-cache.json").write_text("{broken")
        ledger = FakeLedger()
        with pytest.raises(FatalError):
            await run_airdrop(airdrop_file, ledger, settings, submitter=submitter)
        assert ledger.calls == []

    @pytest.mark.unit
    async def test_json_output_is_array(self, airdrop_file, fast_policy, submitter, capsys):
        settings = BatchSettings(retry_policy=fast_policy, json_output=True)
        await run_airdrop(airdrop_file, FakeLedger(), settings, submitter=submitter)
        out = json.loads(capsys.readouterr().out)
        assert [o["target"] for o in out] == ["M1", "M2", "M3"]

    @pytest.mark.unit
    async def test_cancelled_run(self, airdrop_file, settings, submitter):
        event = asyncio.Event()
        event.set()
        result = await run_airdrop(airdrop_file, FakeLedger(), settings, submitter=submitter, cancel_event=event)
        assert result.cancelled
        assert result.not_started == 3


# =============================================================================
# Transfer
# =============================================================================

@pytest.mark.asyncio
class TestTransfer:
    @pytest.mark.unit
    async def test_transfers_each_mint(self, settings, submitter):
        ledger = FakeLedger()
        result = await run_transfer(ADDR_A, ["M1", "M2"], ledger, settings, submitter=submitter)
        assert result.succeeded == 2
        assert {c["to"] for c in ledger.calls} == {ADDR_A}

    @pytest.mark.unit
    async def test_requires_mints(self, settings, submitter):
        with pytest.raises(ValidationError, match="At least one mint"):
            await run_transfer(ADDR_A, [], FakeLedger(), settings, submitter=submitter)

    @pytest.mark.unit
    async def test_rejects_bad_recipient(self, settings, submitter):
        with pytest.raises(ValidationError, match="Invalid recipient"):
            await run_transfer("nope", ["M1"], FakeLedger(), settings, submitter=submitter)

    @pytest.mark.unit
    async def test_retry_cache_enables_resume(self, temp_dir, fast_policy, submitter):
        path = temp_dir / "transfer-cache.json"
        settings = BatchSettings(retry_policy=fast_policy, cache_path=path)
        await run_transfer(ADDR_A, ["M1"], FakeLedger(), settings, submitter=submitter)

        ledger = FakeLedger()
        result = await run_transfer(ADDR_A, ["M1", "M2"], ledger, settings, submitter=submitter)
        assert [c["asset"] for c in ledger.calls] == ["M2"]
        assert result.skipped == 1


# =============================================================================
# Mint
# =============================================================================

class TestMintHelpers:
    @pytest.mark.unit
    @pytest.mark.parametrize("metadata, valid", [
        ({"name": "Cat"}, True),
        ({"name": ""}, False),
        ({"symbol": "CAT"}, False),
        (["name"], False),
    ])
    def test_validate_metadata(self, metadata, valid):
        assert validate_metadata(metadata) is valid

    @pytest.mark.unit
    def test_collect_targets_merges_json_list(self, temp_dir):
        listing = temp_dir / "uris.json"
        listing.write_text(json.dumps(["https://a/2.json"]))
        assert collect_targets(["https://a/1.json"], listing) == ["https://a/1.json", "https://a/2.json"]

    @pytest.mark.unit
    def test_collect_targets_requires_something(self):
        with pytest.raises(ValidationError, match="At least one metadata URI"):
            collect_targets([])

    @pytest.mark.unit
    def test_local_files_rejected(self, temp_dir):
        meta = temp_dir / "meta.json"
        meta.write_text("{}")
        with pytest.raises(ValidationError, match="not supported"):
            collect_targets([str(meta)])


@pytest.mark.asyncio
class TestMint:
    @pytest.mark.unit
    async def test_mints_valid_and_isolates_bad_metadata(self, settings, submitter):
        content = FakeContentStore(documents={
            "https://a/1.json": {"name": "Cat #1"},
            "https://a/2.json": {"symbol": "nameless"},
        })
        ledger = FakeLedger()
        result = await run_mint(
            ["https://a/1.json", "https://a/2.json", "https://a/3.json"],
            ledger, content, settings, submitter=submitter,
        )

        statuses = [o.status for o in result.outcomes]
        assert statuses == [ItemStatus.SUCCEEDED, ItemStatus.FAILED, ItemStatus.FAILED]
        assert result.outcomes[0].details["name"] == "Cat #1"
        assert result.outcomes[1].error == "Invalid metadata"
        assert result.outcomes[2].error == "Failed to fetch metadata"
        assert ledger.calls == [{"type": "mint", "uri": "https://a/1.json", "name": "Cat #1"}]

    @pytest.mark.unit
    async def test_owner_from_settings(self, fast_policy, submitter):
        settings = BatchSettings(retry_policy=fast_policy, owner_address=ADDR_B)
        ledger = FakeLedger()
        content = FakeContentStore(documents={"https://a/1.json": {"name": "Cat"}})
        result = await run_mint(["https://a/1.json"], ledger, content, settings, submitter=submitter)
        assert ledger.calls[0]["owner"] == ADDR_B
        assert result.outcomes[0].destination == ADDR_B

    @pytest.mark.unit
    async def test_json_list_gets_cache(self, temp_dir, settings, submitter):
        listing = temp_dir / "uris.json"
        listing.write_text(json.dumps(["https://a/1.json"]))
        content = FakeContentStore(documents={"https://a/1.json": {"name": "Cat"}})
        await run_mint([], FakeLedger(), content, settings, json_list=listing, submitter=submitter)
        assert "https://a/1.json" in load_cache(temp_dir / "uris-cache.json")

    @pytest.mark.unit
    async def test_mint_is_retried(self, settings, submitter):
        uri = "https://a/1.json"
        ledger = FakeLedger(script={uri: [TransientNetworkError("503"), "T-mint"]})
        content = FakeContentStore(documents={uri: {"name": "Cat"}})
        result = await run_mint([uri], ledger, content, settings, submitter=submitter)
        assert result.outcomes[0].transaction_id == "T-mint"
        assert ledger.calls_for(uri) == 2


# =============================================================================
# Upload
# =============================================================================

class TestBuildUploadItems:
    @pytest.mark.unit
    def test_requires_files(self):
        with pytest.raises(ValidationError, match="no files specified"):
            build_upload_items([])

    @pytest.mark.unit
    def test_guesses_content_type(self, temp_dir):
        (temp_dir / "a.png").write_bytes(b"png")
        (temp_dir / "b.unknownext").write_bytes(b"??")
        items = build_upload_items([str(temp_dir)])
        assert [i.payload["content_type"] for i in items] == ["image/png", "application/octet-stream"]
        assert items[0].payload["size"] == 3


@pytest.mark.asyncio
class TestUpload:
    @pytest.mark.unit
    async def test_upload_reports_gateway_url(self, temp_dir, settings, submitter):
        path = temp_dir / "a.png"
        path.write_bytes(b"png-bytes")
        content = FakeContentStore(upload_failures={str(path): 2})

        result = await run_upload([str(path)], content, FakePricing(), FakeFunder(), settings, submitter=submitter)

        outcome = result.outcomes[0]
        assert outcome.transaction_id == "addr1"
        assert outcome.details["url"] == "https://gateway.test/addr1"
        assert content.uploads[0]["data"] == b"png-bytes"
        assert content.uploads[0]["content_type"] == "image/png"

    @pytest.mark.unit
    async def test_file_removed_after_planning_fails_that_item(self, temp_dir, settings, submitter):
        kept, removed = temp_dir / "a.txt", temp_dir / "b.txt"
        kept.write_text("a")
        removed.write_text("b")
        content = FakeContentStore()

        async def fund_then_delete(amount):
            removed.unlink()
            return "fund-tx"

        funder = FakeFunder()
        funder.fund = fund_then_delete
        result = await run_upload(
            [str(kept), str(removed)], content, FakePricing(), funder, settings, submitter=submitter
        )
        assert [o.status for o in result.outcomes] == [ItemStatus.SUCCEEDED, ItemStatus.FAILED]
        assert "Could not read" in result.outcomes[1].error


# =============================================================================
# Update metadata
# =============================================================================

class TestBuildChanges:
    @pytest.mark.unit
    def test_requires_a_change(self):
        with pytest.raises(ValidationError):
            build_changes()

    @pytest.mark.unit
    def test_uri_must_be_url(self):
        with pytest.raises(ValidationError, match="Invalid metadata URI"):
            build_changes(uri="not a url")

    @pytest.mark.unit
    def test_only_given_fields(self):
        assert build_changes(name="New", symbol="NEW") == {"name": "New", "symbol": "NEW"}


@pytest.mark.asyncio
class TestUpdateMetadata:
    @pytest.mark.unit
    async def test_owner_selector_resolves_assets(self, settings, submitter):
        ledger = FakeLedger(assets=["A1", "A2"])
        result = await run_update_metadata(
            TargetSelector.by_owner(ADDR_A), ledger, settings, name="Renamed", submitter=submitter
        )
        assert result.succeeded == 2
        assert ledger.trace[0] == f"find:owner={ADDR_A}"
        assert ledger.calls[0] == {"type": "update_metadata", "asset": "A1", "name": "Renamed"}

    @pytest.mark.unit
    async def test_mint_list_skips_lookup(self, settings, submitter):
        ledger = FakeLedger()
        result = await run_update_metadata(
            TargetSelector.by_mint_list(["A9"]), ledger, settings,
            uri="https://a/new.json", submitter=submitter,
        )
        assert not any(t.startswith("find:") for t in ledger.trace)
        assert result.outcomes[0].identity == "A9"

    @pytest.mark.unit
    async def test_no_matches_warns(self, settings, submitter, capsys):
        result = await run_update_metadata(
            TargetSelector.by_creators(["C1"]), FakeLedger(), settings, symbol="X", submitter=submitter
        )
        assert result.outcomes == []
        assert "No assets matched" in capsys.readouterr().err

    @pytest.mark.unit
    async def test_failed_lookup_is_fatal(self, settings, submitter):
        ledger = FakeLedger()

        async def broken_find(selector):
            raise TransientNetworkError("rpc down")

        ledger.find_assets = broken_find
        with pytest.raises(FatalError, match="Could not resolve assets"):
            await run_update_metadata(
                TargetSelector.by_owner(ADDR_A), ledger, settings, name="X", submitter=submitter
            )


# =============================================================================
# Config
# =============================================================================

class TestConfigCommand:
    @pytest.fixture
    def loader(self, config_file):
        loader = ConfigLoader(config_file)
        loader.load_configs()
        return loader

    @pytest.mark.unit
    def test_get(self, loader, capsys):
        run_config(loader, "get", "ledger.env")
        assert capsys.readouterr().out.strip() == "ledger.env: devnet"

    @pytest.mark.unit
    def test_get_unknown(self, loader):
        with pytest.raises(ValidationError, match="Unknown config name"):
            run_config(loader, "get", "ledger.bogus")

    @pytest.mark.unit
    def test_set_persists(self, loader, config_file, capsys):
        run_config(loader, "set", "ledger.env", "testnet")
        out = capsys.readouterr().out
        assert "Old ledger.env: devnet" in out
        assert "New ledger.env: testnet" in out
        assert yaml.safe_load(config_file.read_text())["ledger"]["env"] == "testnet"

    @pytest.mark.unit
    def test_set_rejects_unknown_env(self, loader, config_file):
        before = config_file.read_text()
        with pytest.raises(ValidationError, match="Invalid env"):
            run_config(loader, "set", "ledger.env", "moonnet")
        assert config_file.read_text() == before

    @pytest.mark.unit
    def test_set_requires_value(self, loader):
        with pytest.raises(ValidationError):
            run_config(loader, "set", "ledger.env")

    @pytest.mark.unit
    def test_list(self, loader, capsys):
        run_config(loader, "list")
        out = capsys.readouterr().out
        assert "ledger.signer: signer-1" in out
        assert "retry.max_attempts: 3" in out
