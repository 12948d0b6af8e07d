"""Consumer statistics model.

Defines Pydantic model for per-consumer message counters.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from pydantic import BaseModel, Field

from notification_relay.models.results import MessageOutcome


class ConsumerStats(BaseModel):
    """Per-consumer message statistics.

    Counters live in memory only and reset on restart.

    Attributes:
        received: Messages delivered to the consumer.
        acked: Messages acknowledged.
        retried: Messages republished for another attempt.
        requeued: Messages negatively acknowledged with requeue.
        dropped: Messages discarded without requeue.
        dead_lettered: Messages moved to the dead-letter queue.
    """

    received: int = Field(default=0, ge=0, description="Messages received")
    acked: int = Field(default=0, ge=0, description="Messages acknowledged")
    retried: int = Field(default=0, ge=0, description="Republished for retry")
    requeued: int = Field(default=0, ge=0, description="Nacked with requeue")
    dropped: int = Field(default=0, ge=0, description="Discarded")
    dead_lettered: int = Field(default=0, ge=0, description="Dead-lettered")

    def record(self, outcome: MessageOutcome) -> None:
        """Count one settled message."""
        if outcome == MessageOutcome.ACK:
            self.acked += 1
        elif outcome == MessageOutcome.RETRY:
            self.retried += 1
        elif outcome == MessageOutcome.REQUEUE:
            self.requeued += 1
        elif outcome == MessageOutcome.DROP:
            self.dropped += 1
        elif outcome == MessageOutcome.DEAD_LETTER:
            self.dead_lettered += 1

    @property
    def settled(self) -> int:
        return self.acked + self.retried + self.requeued + self.dropped + self.dead_lettered

    def success_rate(self) -> float:
        """Percentage of settled messages that were acknowledged."""
        if not self.settled:
            return 0.0
        return self.acked / self.settled * 100
