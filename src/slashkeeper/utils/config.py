# src/slashkeeper/utils/config.py
from decimal import Decimal

class Config:
    # Liveness defaults
    SIGNED_BLOCKS_WINDOW = 10000  # blocks
    MIN_SIGNED_PER_WINDOW = Decimal('0.05')
    DOWNTIME_JAIL_DURATION = 600  # 10 minutes in seconds

    # Slash fractions
    SLASH_FRACTION_DOUBLE_SIGN = Decimal('0.05')  # 5%
    SLASH_FRACTION_DOWNTIME = Decimal('0.0001')  # 0.01%

    # Evidence configuration
    MAX_EVIDENCE_AGE = 1814400  # 21 days in seconds, matches the unbonding period

    # Validator set changes take effect this many blocks after they are computed
    VALIDATOR_UPDATE_DELAY = 1

    # Double-sign offenders are jailed "forever": 9999-12-31T23:59:59Z
    DOUBLE_SIGN_JAIL_END_TIME = 253402300799

    # Lowest height a slash may reach back to; earlier heights mean "before genesis"
    PRE_GENESIS_HEIGHT = 0

    # Missed-block bitmap is persisted in chunks of this many bits
    MISSED_BLOCKS_CHUNK_SIZE = 1024

    # Storage configuration
    DEFAULT_DB_PATH = "data/slashing.db"
    DEFAULT_CONFIG_PATH = "config/node.yaml"

    # Query service
    API_HOST = "127.0.0.1"
    API_PORT = 8000
    MAX_PAGE_LIMIT = 100
    METRICS_PORT = 9090
