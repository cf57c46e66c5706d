from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from kitab_sync.domain.value_objects.enums import DeliveryState


@dataclass(frozen=True, slots=True)
class Message:
    id: int | None
    conversation_id: int
    sender_id: int | None
    body: str
    created_at: datetime
    client_msg_id: str | None = None
    state: DeliveryState = DeliveryState.CONFIRMED

    @property
    def is_provisional(self) -> bool:
        """True while the message is pending delivery or its send failed."""
        return self.state != DeliveryState.CONFIRMED
