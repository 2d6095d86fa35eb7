# File: src/slashkeeper/monitoring/metrics.py

from typing import Optional
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

class SlashingMetrics:
    """Prometheus metrics for block processing and slashing.

    Each collector owns its registry so several processors (or tests) can
    coexist in one interpreter.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        # Block processing
        self.blocks_processed = Counter(
            'slashing_blocks_processed', 'Total blocks processed', registry=self.registry
        )
        self.processing_time = Histogram(
            'slashing_block_processing_seconds', 'Slashing time per block', registry=self.registry
        )
        self.last_height = Gauge(
            'slashing_last_height', 'Height of the last processed block', registry=self.registry
        )

        # Liveness
        self.missed_votes = Counter(
            'slashing_missed_votes', 'Votes absent from commits', registry=self.registry
        )

        # Penalties
        self.slashes = Counter(
            'slashing_events', 'Slash events by reason', ['reason'], registry=self.registry
        )
        self.tokens_burned = Counter(
            'slashing_tokens_burned', 'Tokens burned by slashing', registry=self.registry
        )
        self.tombstones = Counter(
            'slashing_tombstones', 'Validators tombstoned', registry=self.registry
        )

    def start_server(self, port: int) -> None:
        start_http_server(port, registry=self.registry)

    def record_missed_vote(self) -> None:
        self.missed_votes.inc()

    def record_slash(self, event) -> None:
        self.slashes.labels(reason=event.reason.value).inc()
        self.tokens_burned.inc(event.burned)
        if event.tombstoned:
            self.tombstones.inc()

    def record_block(self, result, elapsed: float) -> None:
        """Record a committed block together with its missed votes and slashes"""
        self.blocks_processed.inc()
        self.missed_votes.inc(result.missed_votes)
        for event in result.events:
            self.record_slash(event)
        self.processing_time.observe(elapsed)
        self.last_height.set(result.height)
