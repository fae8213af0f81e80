from __future__ import annotations

from enum import StrEnum


class AccessMode(StrEnum):
    AUTO = "auto"
    PROCEDURES = "procedures"
    QUERIES = "queries"


class OverflowPolicy(StrEnum):
    DROP_NEWEST = "drop_newest"
    DROP_OLDEST = "drop_oldest"


class OutboxStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"
