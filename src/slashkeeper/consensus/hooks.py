# src/slashkeeper/consensus/hooks.py
import logging

from .staking import StakingModule
from ..exceptions import (
    JailPeriodActiveError,
    SigningInfoNotFoundError,
    ValidatorNotJailedError,
    ValidatorTombstonedError
)
from ..storage.signing_info import SigningInfoStore, ValidatorSigningInfo

logger = logging.getLogger(__name__)

class SlashingHooks:
    """Reactions to staking lifecycle changes, plus validator unjailing"""

    def __init__(self, store: SigningInfoStore, staking: StakingModule):
        self.store = store
        self.staking = staking

    def after_validator_bonded(self, address: str, height: int) -> ValidatorSigningInfo:
        """Start (or restart) liveness tracking when a validator bonds"""
        info = self.store.get_or_none(address)
        if info is None:
            info = ValidatorSigningInfo(address=address, start_height=height)
            logger.info(f"Tracking liveness of {address} from height {height}")
        else:
            info.start_height = height
        self.store.set(address, info)
        return info

    def unjail(self, address: str, block_time: int) -> None:
        """Let a jailed validator back into the active set once its jail time is served"""
        info = self.store.get_or_none(address)
        if info is None:
            raise SigningInfoNotFoundError(f"No signing info for {address}")
        if not self.staking.is_jailed(address):
            raise ValidatorNotJailedError(f"Validator {address} is not jailed")
        if info.tombstoned:
            raise ValidatorTombstonedError(f"Validator {address} is tombstoned")
        if block_time < info.jailed_until:
            raise JailPeriodActiveError(
                f"Validator {address} is jailed until {info.jailed_until}"
            )
        self.staking.unjail_validator(address)
