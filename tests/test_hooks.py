# tests/test_hooks.py
import pytest

from conftest import block_time
from slashkeeper.consensus.evidence import Evidence
from slashkeeper.consensus.liveness import Vote
from slashkeeper.exceptions import (
    JailPeriodActiveError,
    SigningInfoNotFoundError,
    ValidatorNotJailedError,
    ValidatorTombstonedError
)

class TestSlashingHooks:
    def test_bonding_creates_signing_info(self, hooks, store):
        info = hooks.after_validator_bonded("val9", 42)

        assert store.get("val9") == info
        assert info.start_height == 42
        assert info.index_offset == 0
        assert not info.tombstoned

    def test_rebonding_only_moves_start_height(self, hooks, store):
        info = store.get("val1")
        info.index_offset = 4
        info.missed_blocks_counter = 2
        info.jailed_until = 99
        store.set("val1", info)

        hooks.after_validator_bonded("val1", 300)

        info = store.get("val1")
        assert info.start_height == 300
        assert info.index_offset == 4
        assert info.missed_blocks_counter == 2
        assert info.jailed_until == 99

class TestUnjail:
    def jail_for_downtime(self, tracker):
        for height in range(1, 12):
            tracker.handle_vote(Vote("val1", 1, False), height, block_time(height))

    def test_unjail_after_jail_period(self, hooks, tracker, staking, store, params):
        self.jail_for_downtime(tracker)
        release = store.get("val1").jailed_until
        assert release == block_time(11) + params.downtime_jail_duration

        with pytest.raises(JailPeriodActiveError):
            hooks.unjail("val1", release - 1)

        hooks.unjail("val1", release)
        assert not staking.is_jailed("val1")

    def test_unjail_requires_jailed_validator(self, hooks):
        with pytest.raises(ValidatorNotJailedError):
            hooks.unjail("val1", block_time(1))

    def test_unjail_unknown_validator(self, hooks):
        with pytest.raises(SigningInfoNotFoundError):
            hooks.unjail("nobody", block_time(1))

    def test_tombstoned_validator_cannot_unjail(self, hooks, slasher):
        slasher.handle_evidence(Evidence("val1", 1, 1, block_time(1)), 2, block_time(2))

        with pytest.raises(ValidatorTombstonedError):
            hooks.unjail("val1", block_time(2) + 10**12)
