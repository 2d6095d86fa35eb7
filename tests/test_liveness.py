# tests/test_liveness.py
import random
from decimal import Decimal

import pytest

from conftest import VALIDATOR_TOKENS, block_time
from slashkeeper.consensus.evidence import EvidenceSlasher, SlashingReason
from slashkeeper.consensus.hooks import SlashingHooks
from slashkeeper.consensus.liveness import LivenessTracker, Vote
from slashkeeper.consensus.staking import InMemoryStaking
from slashkeeper.exceptions import SigningInfoNotFoundError
from slashkeeper.monitoring.metrics import SlashingMetrics
from slashkeeper.params import SlashingParams
from slashkeeper.storage.database import Database
from slashkeeper.storage.signing_info import SigningInfoStore

def vote(address: str, signed: bool) -> Vote:
    return Vote(validator_address=address, power=VALIDATOR_TOKENS, signed=signed)

class TestLivenessTracker:
    def test_signed_vote_advances_offset_only(self, tracker, store):
        event = tracker.handle_vote(vote("val1", True), 1, block_time(1))

        info = store.get("val1")
        assert event is None
        assert info.index_offset == 1
        assert info.missed_blocks_counter == 0
        assert store.missed_blocks("val1") == []

    def test_counter_matches_bit_array(self, db, staking):
        # min_signed_per_window = 0 never slashes, so every vote is tracked
        params = SlashingParams(signed_blocks_window=7, min_signed_per_window=Decimal('0'))
        store = SigningInfoStore(db, chunk_size=3)
        SlashingHooks(store, staking).after_validator_bonded("val1", 0)
        tracker = LivenessTracker(store, EvidenceSlasher(store, staking, params), params)
        rng = random.Random(42)

        for height in range(1, 60):
            tracker.handle_vote(vote("val1", rng.random() < 0.4), height, block_time(height))
            info = store.get("val1")
            assert info.missed_blocks_counter == len(store.missed_blocks("val1"))
            assert info.index_offset == height % 7

    def test_signing_again_clears_missed_slot(self, tracker, store, params):
        tracker.handle_vote(vote("val1", False), 1, block_time(1))
        assert store.get("val1").missed_blocks_counter == 1

        # wrap around the window back to slot 0
        for height in range(2, params.signed_blocks_window + 1):
            tracker.handle_vote(vote("val1", True), height, block_time(height))
        tracker.handle_vote(vote("val1", True), 11, block_time(11))

        assert store.get("val1").missed_blocks_counter == 0
        assert not store.get_bit("val1", 0)

    def test_no_downtime_slash_before_window_completes(self, tracker, store, staking, params):
        for height in range(1, params.signed_blocks_window + 1):
            assert tracker.handle_vote(vote("val1", False), height, block_time(height)) is None

        assert store.get("val1").missed_blocks_counter == 10
        assert not staking.is_jailed("val1")
        assert staking.total_tokens("val1") == VALIDATOR_TOKENS

    def test_downtime_slash_jails_and_resets(self, tracker, store, staking, params):
        for height in range(1, 11):
            tracker.handle_vote(vote("val1", False), height, block_time(height))

        event = tracker.handle_vote(vote("val1", False), 11, block_time(11))

        assert event is not None
        assert event.reason == SlashingReason.DOWNTIME
        assert event.infraction_height == 9
        assert event.burned == VALIDATOR_TOKENS // 100
        assert not event.tombstoned
        assert staking.total_tokens("val1") == VALIDATOR_TOKENS - VALIDATOR_TOKENS // 100
        assert staking.is_jailed("val1")

        info = store.get("val1")
        assert info.jailed_until == block_time(11) + params.downtime_jail_duration
        assert not info.tombstoned
        assert info.missed_blocks_counter == 0
        assert info.index_offset == 0
        assert store.missed_blocks("val1") == []

    def test_no_residual_state_after_jail(self, tracker, store, staking):
        for height in range(1, 12):
            tracker.handle_vote(vote("val1", False), height, block_time(height))
        assert staking.is_jailed("val1")

        # jailed validators are out of the active set and not tracked
        assert tracker.handle_vote(vote("val1", False), 12, block_time(12)) is None
        assert store.get("val1").index_offset == 0

        staking.unjail_validator("val1")
        assert tracker.handle_vote(vote("val1", False), 13, block_time(13)) is None

        info = store.get("val1")
        assert info.missed_blocks_counter == 1
        assert info.index_offset == 1
        assert store.missed_blocks("val1") == [0]

    def test_start_height_delays_slashing(self, tracker, store, hooks):
        hooks.after_validator_bonded("val1", 20)

        for height in range(21, 31):
            assert tracker.handle_vote(vote("val1", False), height, block_time(height)) is None
        assert store.get("val1").missed_blocks_counter == 10
        assert tracker.handle_vote(vote("val1", False), 31, block_time(31)) is not None

    def test_tombstoned_validator_is_skipped(self, tracker, store):
        info = store.get("val1")
        info.tombstoned = True
        store.set("val1", info)

        assert tracker.handle_vote(vote("val1", False), 1, block_time(1)) is None
        assert store.get("val1").index_offset == 0

    def test_missing_signing_info_raises(self, tracker):
        with pytest.raises(SigningInfoNotFoundError):
            tracker.handle_vote(vote("stranger", True), 1, block_time(1))

    def test_downtime_slash_reaches_unbonding_stake(self, tracker, staking):
        # created after the distribution height (9) of the slash at height 11
        entry = staking.unbond("delegator", "val1", 100_000, 10, block_time(1000))
        for height in range(1, 12):
            tracker.handle_vote(vote("val1", False), height, block_time(height))

        assert entry.balance == 100_000 - 1_000
        # 1% of the genesis shares, less what the unbonding entry paid
        assert staking.total_tokens("val1") == 900_000 - (10_000 - 1_000)

class TestPreGenesisDistributionHeight:
    """A validator update delay longer than the chain so far puts the
    distribution height before genesis"""

    @pytest.fixture
    def setup(self, db):
        params = SlashingParams(
            signed_blocks_window=1,
            min_signed_per_window=Decimal('1'),
            slash_fraction_downtime=Decimal('0.5'),
            validator_update_delay=5
        )
        store = SigningInfoStore(db)
        staking = InMemoryStaking()
        staking.add_validator("val1", 1_000)
        staking.record_historical_shares(0)
        SlashingHooks(store, staking).after_validator_bonded("val1", 0)
        metrics = SlashingMetrics()
        slasher = EvidenceSlasher(store, staking, params)
        return LivenessTracker(store, slasher, params, metrics), staking, metrics

    def test_slash_clamps_to_genesis(self, setup):
        tracker, staking, _ = setup
        entry = staking.unbond("delegator", "val1", 100, 0, block_time(1000))

        assert tracker.handle_vote(vote("val1", False), 1, block_time(1)) is None
        event = tracker.handle_vote(vote("val1", False), 2, block_time(2))

        assert event.infraction_height == 2 - 5 - 1
        # half of the 1_000 shares held at genesis; the entry pays half of its 100
        assert event.burned == 500
        assert entry.balance == 50
        assert staking.total_tokens("val1") == 900 - 450
        assert staking.is_jailed("val1")

    def test_tracker_records_metrics(self, setup):
        tracker, _, metrics = setup
        tracker.handle_vote(vote("val1", False), 1, block_time(1))
        tracker.handle_vote(vote("val1", False), 2, block_time(2))

        registry = metrics.registry
        assert registry.get_sample_value('slashing_missed_votes_total') == 2
        assert registry.get_sample_value(
            'slashing_events_total', {'reason': 'downtime'}
        ) == 1
        assert registry.get_sample_value('slashing_tokens_burned_total') == 500

class TestDowntimeThresholdAtScale:
    """signed_blocks_window=10000, min_signed_per_window=0.05: at most 9500 misses"""

    def test_9501st_miss_slashes(self):
        params = SlashingParams(
            signed_blocks_window=10000,
            min_signed_per_window=Decimal('0.05'),
            slash_fraction_downtime=Decimal('0.0001')
        )
        assert params.max_missed_blocks() == 9500

        db = Database()
        store = SigningInfoStore(db)
        staking = InMemoryStaking()
        staking.add_validator("val1", VALIDATOR_TOKENS)
        staking.record_historical_shares(0)
        SlashingHooks(store, staking).after_validator_bonded("val1", 0)
        tracker = LivenessTracker(store, EvidenceSlasher(store, staking, params), params)

        for height in range(1, 10001):
            signed = height <= 500
            assert tracker.handle_vote(vote("val1", signed), height, block_time(height)) is None
        assert store.get("val1").missed_blocks_counter == 9500

        # slot 0 held a signature; missing it now is the 9501st miss in the window
        event = tracker.handle_vote(vote("val1", False), 10001, block_time(10001))

        assert event is not None
        assert event.burned == 100
        assert staking.is_jailed("val1")
        info = store.get("val1")
        assert info.missed_blocks_counter == 0
        assert info.index_offset == 0
        assert store.missed_blocks("val1") == []
        db.close()
