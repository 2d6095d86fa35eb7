# src/slashkeeper/exceptions.py

class SlashingError(Exception):
    """Base exception class for slashing-related errors"""
    pass

class StorageError(SlashingError):
    """Base exception class for storage-related errors"""
    pass

class DatabaseError(StorageError):
    """Raised when database operations fail"""
    pass

class ValidationError(SlashingError):
    """Raised when validation fails"""
    pass

class InvalidParamsError(ValidationError):
    """Raised when slashing parameters are out of range"""
    pass

class InvalidEvidenceError(ValidationError):
    """Raised when evidence is malformed"""
    pass

class ConsensusError(SlashingError):
    """Raised when consensus rules are violated"""
    pass

class ValidatorNotFoundError(ConsensusError):
    """Raised when the staking module has no record for a validator"""
    pass

class SigningInfoNotFoundError(ConsensusError):
    """Raised when a validator has no signing info"""
    pass

class UnjailError(SlashingError):
    """Base exception class for rejected unjail requests"""
    pass

class ValidatorNotJailedError(UnjailError):
    """Raised when unjailing a validator that is not jailed"""
    pass

class ValidatorTombstonedError(UnjailError):
    """Raised when unjailing a tombstoned validator"""
    pass

class JailPeriodActiveError(UnjailError):
    """Raised when the jail period has not yet elapsed"""
    pass
