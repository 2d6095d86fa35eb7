# src/slashkeeper/consensus/block_processor.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import logging
import time

from .evidence import Evidence, EvidenceSlasher, SlashEvent
from .liveness import LivenessTracker, Vote
from .staking import StakingModule
from ..params import SlashingParams
from ..storage.database import Database
from ..storage.signing_info import SigningInfoStore
from ..storage.state_cache import StateCache

logger = logging.getLogger(__name__)

@dataclass
class BlockResult:
    height: int
    events: List[SlashEvent] = field(default_factory=list)
    missed_votes: int = 0
    skipped_evidence: int = 0

    def to_dict(self) -> Dict:
        return {
            "height": self.height,
            "events": [event.to_dict() for event in self.events],
            "missed_votes": self.missed_votes,
            "skipped_evidence": self.skipped_evidence
        }

class BlockProcessor:
    """Runs slashing for one block at a time.

    Evidence is handled before liveness so that a validator tombstoned in
    this block is not also charged for downtime. Signing-info writes of a
    block are buffered and committed together with the stake changes; if
    anything raises, both are rolled back and the error propagates to the
    consensus driver.
    """

    def __init__(
        self,
        db: Database,
        staking: StakingModule,
        params: SlashingParams,
        metrics=None
    ):
        self.db = db
        self.staking = staking
        self.params = params
        self.metrics = metrics
        self.last_height: Optional[int] = None

    def process_block(
        self,
        height: int,
        block_time: int,
        votes: Sequence[Vote],
        evidence: Sequence[Evidence] = ()
    ) -> BlockResult:
        started = time.perf_counter()
        cache = StateCache(self.db)
        store = SigningInfoStore(cache)
        # Metrics are recorded once the block commits
        slasher = EvidenceSlasher(store, self.staking, self.params)
        tracker = LivenessTracker(store, slasher, self.params)
        result = BlockResult(height=height)

        self.staking.begin_block()
        try:
            for item in evidence:
                if item.is_expired(block_time, self.params.max_evidence_age):
                    logger.warning(
                        f"Ignored evidence against {item.validator_address} from "
                        f"height {item.infraction_height}: older than max evidence age"
                    )
                    result.skipped_evidence += 1
                    continue
                event = slasher.handle_evidence(item, height, block_time)
                if event:
                    result.events.append(event)

            for vote in votes:
                if not vote.signed:
                    result.missed_votes += 1
                event = tracker.handle_vote(vote, height, block_time)
                if event:
                    result.events.append(event)

            cache.commit()
            self.staking.commit_block()
        except Exception as e:
            cache.discard()
            self.staking.rollback_block()
            logger.error(f"Slashing failed at height {height}, block state discarded: {str(e)}")
            raise

        self.last_height = height
        if self.metrics:
            self.metrics.record_block(result, time.perf_counter() - started)
        if result.events:
            logger.info(f"Height {height}: {len(result.events)} slash event(s)")
        return result
