# tests/conftest.py
import os
import sys
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from slashkeeper.consensus.evidence import EvidenceSlasher
from slashkeeper.consensus.hooks import SlashingHooks
from slashkeeper.consensus.liveness import LivenessTracker
from slashkeeper.consensus.staking import InMemoryStaking
from slashkeeper.params import SlashingParams
from slashkeeper.storage.database import Database
from slashkeeper.storage.signing_info import SigningInfoStore

GENESIS_TIME = 1_700_000_000
VALIDATOR_TOKENS = 1_000_000

@pytest.fixture
def params():
    """Small window: 5 of 10 blocks must be signed"""
    return SlashingParams(
        max_evidence_age=1000,
        signed_blocks_window=10,
        min_signed_per_window=Decimal('0.5'),
        downtime_jail_duration=60,
        slash_fraction_double_sign=Decimal('0.05'),
        slash_fraction_downtime=Decimal('0.01'),
        validator_update_delay=1
    )

@pytest.fixture
def db():
    database = Database()
    yield database
    database.close()

@pytest.fixture
def store(db):
    return SigningInfoStore(db)

@pytest.fixture
def staking():
    """Two bonded validators, shares recorded at genesis"""
    ledger = InMemoryStaking()
    ledger.add_validator("val1", VALIDATOR_TOKENS)
    ledger.add_validator("val2", VALIDATOR_TOKENS // 2)
    ledger.record_historical_shares(0)
    return ledger

@pytest.fixture
def hooks(store, staking):
    hooks = SlashingHooks(store, staking)
    hooks.after_validator_bonded("val1", 0)
    hooks.after_validator_bonded("val2", 0)
    return hooks

@pytest.fixture
def slasher(store, staking, params, hooks):
    return EvidenceSlasher(store, staking, params)

@pytest.fixture
def tracker(store, slasher, params):
    return LivenessTracker(store, slasher, params)

def block_time(height: int) -> int:
    return GENESIS_TIME + height * 5
