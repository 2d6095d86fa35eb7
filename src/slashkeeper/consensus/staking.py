# src/slashkeeper/consensus/staking.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional
import logging

from ..exceptions import ValidatorNotFoundError

logger = logging.getLogger(__name__)

@dataclass
class UnbondingEntry:
    """Stake leaving a validator, still slashable until completion_time"""
    delegator: str
    validator: str
    creation_height: int
    completion_time: int
    initial_balance: int
    balance: int

@dataclass
class RedelegationEntry:
    """Stake moved from source to destination, slashable until completion_time"""
    delegator: str
    source: str
    destination: str
    creation_height: int
    completion_time: int
    initial_balance: int
    shares_dst: int

@dataclass
class StakedValidator:
    address: str
    tokens: int
    jailed: bool = False

class StakingModule(ABC):
    """What the slashing core needs from the staking ledger"""

    @abstractmethod
    def get_historical_shares(self, address: str, height: int) -> int:
        """Bonded shares of a validator as of height"""

    @abstractmethod
    def get_unbonding_entries(self, address: str) -> List[UnbondingEntry]:
        """Unbonding entries of a validator, oldest first"""

    @abstractmethod
    def get_redelegations_by_source(self, address: str) -> List[RedelegationEntry]:
        """Redelegations out of a validator, oldest first"""

    @abstractmethod
    def reduce_validator_shares(self, address: str, amount: int) -> int:
        """Burn up to amount of bonded shares, return what was burned"""

    @abstractmethod
    def burn_unbonding_tokens(self, entry: UnbondingEntry, amount: int) -> int:
        """Burn up to amount from an unbonding entry, return what was burned"""

    @abstractmethod
    def burn_redelegation_destination_stake(self, entry: RedelegationEntry, amount: int) -> int:
        """Destroy up to amount of the redelegated stake at its destination"""

    @abstractmethod
    def jail_validator(self, address: str) -> None:
        """Remove a validator from the active set"""

    @abstractmethod
    def unjail_validator(self, address: str) -> None:
        """Return a jailed validator to the active set"""

    @abstractmethod
    def is_jailed(self, address: str) -> bool:
        """Whether the validator is currently jailed"""

    # Block transaction: slashing for a block applies fully or not at all

    @abstractmethod
    def begin_block(self) -> None:
        """Start recording stake changes made while a block is slashed"""

    @abstractmethod
    def commit_block(self) -> None:
        """Keep every change made since begin_block()"""

    @abstractmethod
    def rollback_block(self) -> None:
        """Undo every change made since begin_block()"""

class InMemoryStaking(StakingModule):
    """Staking ledger kept in dictionaries.

    Share history is recorded explicitly with record_historical_shares(),
    normally once per block before slashing runs.
    """

    def __init__(self):
        self.validators: Dict[str, StakedValidator] = {}
        self.history: Dict[int, Dict[str, int]] = {}  # height -> validator -> shares
        self.unbondings: Dict[str, List[UnbondingEntry]] = {}
        self.redelegations: List[RedelegationEntry] = []
        self.total_burned = 0
        self._checkpoint: Optional[Dict] = None

    def add_validator(self, address: str, tokens: int) -> StakedValidator:
        if tokens < 0:
            raise ValueError("Validator tokens cannot be negative")
        validator = StakedValidator(address=address, tokens=tokens)
        self.validators[address] = validator
        return validator

    def get_validator(self, address: str) -> StakedValidator:
        validator = self.validators.get(address)
        if validator is None:
            raise ValidatorNotFoundError(f"Unknown validator {address}")
        return validator

    def record_historical_shares(self, height: int) -> None:
        """Snapshot every validator's shares at height"""
        self.history[height] = {
            address: validator.tokens
            for address, validator in self.validators.items()
        }

    def get_historical_shares(self, address: str, height: int) -> int:
        recorded = [h for h in self.history if h <= height and address in self.history[h]]
        if not recorded:
            raise ValidatorNotFoundError(
                f"No historical shares for {address} at height {height}"
            )
        return self.history[max(recorded)][address]

    def unbond(
        self,
        delegator: str,
        address: str,
        amount: int,
        creation_height: int,
        completion_time: int
    ) -> UnbondingEntry:
        """Move tokens out of a validator into a new unbonding entry"""
        validator = self.get_validator(address)
        if amount <= 0 or amount > validator.tokens:
            raise ValueError(f"Cannot unbond {amount} from {address}")
        validator.tokens -= amount
        entry = UnbondingEntry(
            delegator=delegator,
            validator=address,
            creation_height=creation_height,
            completion_time=completion_time,
            initial_balance=amount,
            balance=amount
        )
        self.unbondings.setdefault(address, []).append(entry)
        return entry

    def redelegate(
        self,
        delegator: str,
        source: str,
        destination: str,
        amount: int,
        creation_height: int,
        completion_time: int
    ) -> RedelegationEntry:
        """Move tokens from source to destination and track the redelegation"""
        src = self.get_validator(source)
        dst = self.get_validator(destination)
        if amount <= 0 or amount > src.tokens:
            raise ValueError(f"Cannot redelegate {amount} from {source}")
        src.tokens -= amount
        dst.tokens += amount
        entry = RedelegationEntry(
            delegator=delegator,
            source=source,
            destination=destination,
            creation_height=creation_height,
            completion_time=completion_time,
            initial_balance=amount,
            shares_dst=amount
        )
        self.redelegations.append(entry)
        return entry

    def get_unbonding_entries(self, address: str) -> List[UnbondingEntry]:
        return list(self.unbondings.get(address, []))

    def get_redelegations_by_source(self, address: str) -> List[RedelegationEntry]:
        return [entry for entry in self.redelegations if entry.source == address]

    def reduce_validator_shares(self, address: str, amount: int) -> int:
        validator = self.get_validator(address)
        burned = min(max(amount, 0), validator.tokens)
        validator.tokens -= burned
        self.total_burned += burned
        return burned

    def burn_unbonding_tokens(self, entry: UnbondingEntry, amount: int) -> int:
        burned = min(max(amount, 0), entry.balance)
        entry.balance -= burned
        self.total_burned += burned
        return burned

    def burn_redelegation_destination_stake(self, entry: RedelegationEntry, amount: int) -> int:
        destination = self.get_validator(entry.destination)
        burned = min(max(amount, 0), entry.shares_dst, destination.tokens)
        entry.shares_dst -= burned
        destination.tokens -= burned
        self.total_burned += burned
        return burned

    def jail_validator(self, address: str) -> None:
        validator = self.get_validator(address)
        if not validator.jailed:
            validator.jailed = True
            logger.info(f"Validator {address} jailed")

    def unjail_validator(self, address: str) -> None:
        validator = self.get_validator(address)
        validator.jailed = False
        logger.info(f"Validator {address} unjailed")

    def is_jailed(self, address: str) -> bool:
        validator = self.validators.get(address)
        return validator.jailed if validator else False

    def begin_block(self) -> None:
        # Entries are restored in place, callers may hold references to them
        self._checkpoint = {
            "validators": {
                address: (validator.tokens, validator.jailed)
                for address, validator in self.validators.items()
            },
            "unbondings": [
                (entry, entry.balance)
                for entries in self.unbondings.values()
                for entry in entries
            ],
            "redelegations": [(entry, entry.shares_dst) for entry in self.redelegations],
            "total_burned": self.total_burned
        }

    def commit_block(self) -> None:
        self._checkpoint = None

    def rollback_block(self) -> None:
        checkpoint = self._checkpoint
        if checkpoint is None:
            return
        for address, (tokens, jailed) in checkpoint["validators"].items():
            validator = self.validators[address]
            validator.tokens = tokens
            validator.jailed = jailed
        for entry, balance in checkpoint["unbondings"]:
            entry.balance = balance
        for entry, shares_dst in checkpoint["redelegations"]:
            entry.shares_dst = shares_dst
        self.total_burned = checkpoint["total_burned"]
        self._checkpoint = None
        logger.warning("Rolled back stake changes of a failed block")

    def total_tokens(self, address: Optional[str] = None) -> int:
        """Bonded tokens of one validator, or of all of them"""
        if address is not None:
            return self.get_validator(address).tokens
        return sum(v.tokens for v in self.validators.values())
