from __future__ import annotations

from enum import StrEnum


class DeliveryState(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class SyncState(StrEnum):
    UNINITIALIZED = "uninitialized"
    LIST_LOADED = "list_loaded"
    CONVERSATION_SELECTED = "conversation_selected"
    MESSAGES_LOADED = "messages_loaded"
