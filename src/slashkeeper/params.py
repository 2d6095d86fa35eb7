# src/slashkeeper/params.py
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Any, Dict

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from .exceptions import InvalidParamsError
from .utils.config import Config

class SlashingParams(BaseModel):
    """Thresholds the slashing module is governed by.

    Passed explicitly into every tracker and slasher call so the core never
    reads ambient state.
    """
    max_evidence_age: int = Field(Config.MAX_EVIDENCE_AGE, ge=0)
    signed_blocks_window: int = Field(Config.SIGNED_BLOCKS_WINDOW, gt=0)
    min_signed_per_window: Decimal = Field(Config.MIN_SIGNED_PER_WINDOW, ge=0, le=1)
    downtime_jail_duration: int = Field(Config.DOWNTIME_JAIL_DURATION, ge=0)
    slash_fraction_double_sign: Decimal = Field(Config.SLASH_FRACTION_DOUBLE_SIGN, ge=0, le=1)
    slash_fraction_downtime: Decimal = Field(Config.SLASH_FRACTION_DOWNTIME, ge=0, le=1)
    validator_update_delay: int = Field(Config.VALIDATOR_UPDATE_DELAY, ge=0)

    model_config = {"frozen": True}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SlashingParams":
        """Build params from untrusted input (YAML, genesis, API)"""
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise InvalidParamsError(str(e)) from e

    def min_signed_blocks(self) -> int:
        """Blocks a validator must sign per window, rounded half to even"""
        needed = self.min_signed_per_window * self.signed_blocks_window
        return int(needed.quantize(Decimal(1), rounding=ROUND_HALF_EVEN))

    def max_missed_blocks(self) -> int:
        return self.signed_blocks_window - self.min_signed_blocks()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_evidence_age": self.max_evidence_age,
            "signed_blocks_window": self.signed_blocks_window,
            "min_signed_per_window": str(self.min_signed_per_window),
            "downtime_jail_duration": self.downtime_jail_duration,
            "slash_fraction_double_sign": str(self.slash_fraction_double_sign),
            "slash_fraction_downtime": str(self.slash_fraction_downtime),
            "validator_update_delay": self.validator_update_delay
        }
