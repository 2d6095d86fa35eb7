# src/slashkeeper/consensus/liveness.py

from dataclasses import dataclass
from typing import Optional
import logging

from .evidence import EvidenceSlasher, SlashEvent, SlashingReason
from ..exceptions import SigningInfoNotFoundError
from ..params import SlashingParams
from ..storage.signing_info import SigningInfoStore

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Vote:
    """One entry of the previous block's commit"""
    validator_address: str
    power: int
    signed: bool

class LivenessTracker:
    """Sliding-window missed-block accounting with downtime slashing.

    Each vote costs O(1): one bit is read, at most one bit is flipped and the
    missed counter moves by one. The bit array is never rescanned.
    """

    def __init__(
        self,
        store: SigningInfoStore,
        slasher: EvidenceSlasher,
        params: SlashingParams,
        metrics=None
    ):
        self.store = store
        self.slasher = slasher
        self.params = params
        self.metrics = metrics

    def handle_vote(self, vote: Vote, height: int, block_time: int) -> Optional[SlashEvent]:
        """Record whether the validator signed; slash and jail on downtime"""
        address = vote.validator_address
        info = self.store.get_or_none(address)
        if info is None:
            raise SigningInfoNotFoundError(f"Expected signing info for {address}")

        if info.tombstoned:
            return None
        if self.slasher.is_jailed(address):
            logger.debug(f"Skipping liveness for jailed validator {address}")
            return None

        window = self.params.signed_blocks_window
        index = info.index_offset % window
        info.index_offset = (info.index_offset + 1) % window

        missed = not vote.signed
        if self.store.get_bit(address, index) != missed:
            self.store.set_bit(address, index, missed)
            info.missed_blocks_counter += 1 if missed else -1

        if missed:
            logger.debug(
                f"Absent validator {address} at height {height}: "
                f"{info.missed_blocks_counter} missed in window"
            )
            if self.metrics:
                self.metrics.record_missed_vote()

        event = None
        min_height = info.start_height + window
        max_missed = self.params.max_missed_blocks()
        if height > min_height and info.missed_blocks_counter > max_missed:
            event = self._slash_for_downtime(info, height, block_time)

        self.store.set(address, info)
        return event

    def _slash_for_downtime(self, info, height: int, block_time: int) -> SlashEvent:
        address = info.address
        # Votes in this commit were cast with the validator set of this height,
        # which was computed validator_update_delay + 1 blocks earlier
        distribution_height = height - self.params.validator_update_delay - 1
        fraction = self.params.slash_fraction_downtime

        logger.info(
            f"Validator {address} missed {info.missed_blocks_counter} blocks "
            f"(max {self.params.max_missed_blocks()}), slashing for downtime"
        )
        burned = self.slasher.slash(address, distribution_height, fraction, height, block_time)
        self.slasher.jail(address, info, block_time + self.params.downtime_jail_duration)

        info.missed_blocks_counter = 0
        info.index_offset = 0
        self.store.clear_bit_array(address)

        event = SlashEvent(
            validator_address=address,
            infraction_height=distribution_height,
            slash_fraction=fraction,
            burned=burned,
            reason=SlashingReason.DOWNTIME,
            jailed_until=info.jailed_until,
            tombstoned=False
        )
        if self.metrics:
            self.metrics.record_slash(event)
        return event
