# src/slashkeeper/consensus/__init__.py
from .block_processor import BlockProcessor, BlockResult
from .evidence import Evidence, EvidenceSlasher, SlashEvent, SlashingReason
from .hooks import SlashingHooks
from .liveness import LivenessTracker, Vote
from .staking import InMemoryStaking, RedelegationEntry, StakingModule, UnbondingEntry

__all__ = [
    'BlockProcessor', 'BlockResult',
    'Evidence', 'EvidenceSlasher', 'SlashEvent', 'SlashingReason',
    'SlashingHooks',
    'LivenessTracker', 'Vote',
    'InMemoryStaking', 'RedelegationEntry', 'StakingModule', 'UnbondingEntry'
]
