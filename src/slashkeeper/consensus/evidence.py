# src/slashkeeper/consensus/evidence.py

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional
import logging

from .slash_math import compute_entry_burns, remaining_validator_slash, slash_amount
from .staking import StakingModule
from ..exceptions import ConsensusError, InvalidEvidenceError, SigningInfoNotFoundError
from ..params import SlashingParams
from ..storage.signing_info import SigningInfoStore, ValidatorSigningInfo
from ..utils.config import Config

logger = logging.getLogger(__name__)

class SlashingReason(Enum):
    DOUBLE_SIGN = "double_sign"
    DOWNTIME = "downtime"

@dataclass(frozen=True)
class Evidence:
    """Double-sign evidence as delivered in a block header.

    power is the voting power reported with the evidence and is only logged;
    the slash is always computed from the staking module's historical shares
    at infraction_height.
    """
    validator_address: str
    infraction_height: int
    power: int
    timestamp: int

    def __post_init__(self):
        if not self.validator_address:
            raise InvalidEvidenceError("Evidence has no validator address")
        if self.infraction_height < 0:
            raise InvalidEvidenceError(f"Negative infraction height {self.infraction_height}")
        if self.power < 0:
            raise InvalidEvidenceError(f"Negative power {self.power}")

    def is_expired(self, block_time: int, max_age: int) -> bool:
        return self.timestamp < block_time - max_age

@dataclass
class SlashEvent:
    validator_address: str
    infraction_height: int
    slash_fraction: Decimal
    burned: int
    reason: SlashingReason
    jailed_until: int
    tombstoned: bool

    def to_dict(self) -> Dict:
        return {
            "validator_address": self.validator_address,
            "infraction_height": self.infraction_height,
            "slash_fraction": str(self.slash_fraction),
            "burned": self.burned,
            "reason": self.reason.value,
            "jailed_until": self.jailed_until,
            "tombstoned": self.tombstoned
        }

class EvidenceSlasher:
    """Slashes stake for double signing and provides the slash/jail primitives
    liveness tracking reuses for downtime."""

    def __init__(
        self,
        store: SigningInfoStore,
        staking: StakingModule,
        params: SlashingParams,
        metrics=None
    ):
        self.store = store
        self.staking = staking
        self.params = params
        self.metrics = metrics

    def slash(
        self,
        address: str,
        infraction_height: int,
        fraction: Decimal,
        block_height: int,
        block_time: int
    ) -> int:
        """Burn fraction of the stake the validator had at infraction_height.

        Stake that has since left through unbonding or redelegation is burned
        where it now sits; the validator pays the rest. Returns the number of
        tokens actually burned.
        """
        if infraction_height > block_height:
            raise ConsensusError(
                f"Cannot slash {address} for future height {infraction_height} "
                f"(current {block_height})"
            )

        # Heights before genesis make every entry eligible
        height = max(infraction_height, Config.PRE_GENESIS_HEIGHT)
        shares = self.staking.get_historical_shares(address, height)
        base = slash_amount(shares, fraction)

        burned = 0
        unbonding_total = 0
        redelegation_total = 0
        # Entries are created after an infraction only if it lies in the past
        if infraction_height < block_height:
            burns, unbonding_total = compute_entry_burns(
                self.staking.get_unbonding_entries(address), height, fraction, block_time
            )
            for entry, burn in burns:
                burned += self.staking.burn_unbonding_tokens(entry, burn)

            burns, redelegation_total = compute_entry_burns(
                self.staking.get_redelegations_by_source(address), height, fraction, block_time
            )
            for entry, burn in burns:
                burned += self.staking.burn_redelegation_destination_stake(entry, burn)

        remaining = remaining_validator_slash(base, unbonding_total, redelegation_total)
        burned += self.staking.reduce_validator_shares(address, remaining)

        logger.info(
            f"Slashed {address}: fraction={fraction} infraction_height={infraction_height} "
            f"base={base} unbondings={unbonding_total} redelegations={redelegation_total} "
            f"burned={burned}"
        )
        return burned

    def is_jailed(self, address: str) -> bool:
        return self.staking.is_jailed(address)

    def jail(self, address: str, info: ValidatorSigningInfo, until: int) -> None:
        """Jail through staking and record when the validator may unjail"""
        if not self.is_jailed(address):
            self.staking.jail_validator(address)
        info.jailed_until = until

    def handle_evidence(
        self,
        evidence: Evidence,
        block_height: int,
        block_time: int
    ) -> Optional[SlashEvent]:
        """Slash, jail and tombstone a double signer.

        Evidence against an already tombstoned validator is ignored, so a
        validator is tombstoned at most once.
        """
        address = evidence.validator_address
        info = self.store.get_or_none(address)
        if info is None:
            raise SigningInfoNotFoundError(f"Expected signing info for {address}")

        if info.tombstoned:
            logger.info(
                f"Ignored double sign by {address} at height {evidence.infraction_height}: "
                f"validator already tombstoned"
            )
            return None

        fraction = self.params.slash_fraction_double_sign
        burned = self.slash(
            address,
            evidence.infraction_height,
            fraction,
            block_height,
            block_time
        )
        self.jail(address, info, Config.DOUBLE_SIGN_JAIL_END_TIME)
        info.tombstoned = True
        self.store.set(address, info)

        logger.warning(
            f"Tombstoned {address} for double signing at height {evidence.infraction_height} "
            f"(power {evidence.power})"
        )
        event = SlashEvent(
            validator_address=address,
            infraction_height=evidence.infraction_height,
            slash_fraction=fraction,
            burned=burned,
            reason=SlashingReason.DOUBLE_SIGN,
            jailed_until=info.jailed_until,
            tombstoned=True
        )
        if self.metrics:
            self.metrics.record_slash(event)
        return event
