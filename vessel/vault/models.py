"""
Vault Models — immutable session records and their metadata projections.
"""
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

# SQLite INTEGER is a signed 64-bit value.
MAX_DURATION_MS = 2**63 - 1
MAX_WORD_COUNT = 2**32 - 1

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_timestamp(moment: datetime | None = None) -> str:
    """Return a fixed-width UTC ISO-8601 timestamp.

    All fields are zero padded and the fraction always has six digits, so
    string order equals chronological order.
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def new_session_id() -> str:
    return str(uuid.uuid4())


class SessionMetadata(BaseModel):
    """Caller-supplied metadata for a new session."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    average_vibe: str
    dominant_state: str
    # strict: no coercion from str, float or bool
    duration_ms: int = Field(strict=True, ge=0, le=MAX_DURATION_MS)
    word_count: int = Field(strict=True, ge=0, le=MAX_WORD_COUNT)


class SessionMeta(SessionMetadata):
    """A stored session without its content."""

    id: str = Field(min_length=1)
    created_at: str


class SessionRecord(SessionMeta):
    """A stored session, content still encrypted."""

    encrypted_content: str

    @classmethod
    def create(
        cls,
        encrypted_content: str,
        metadata: SessionMetadata,
        created_at: str | None = None,
    ) -> "SessionRecord":
        """Build a new record with a fresh id and timestamp."""
        return cls(
            id=new_session_id(),
            encrypted_content=encrypted_content,
            created_at=created_at or utc_timestamp(),
            **metadata.model_dump(),
        )

    def meta(self) -> SessionMeta:
        return SessionMeta(**self.model_dump(exclude={"encrypted_content"}))
