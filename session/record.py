"""
Session record model.

A SessionRecord is the unit of persistence: the timestamps and attributes
the web container keeps for one user session. All timestamps are epoch
milliseconds.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class SessionRecord(BaseModel):
    """
    Durable representation of one server-side session.
    
    The container creates the record on first touch of a session and
    updates the timestamps and attributes on each request. The store owns
    last_saved and overwrites it on every successful write.
    
    Attributes:
        id: Globally unique session id, never empty and never reassigned
        context_path: Logical application path the session belongs to
        virtual_host: Logical host the session belongs to
        created: Creation time
        accessed: Previous last_accessed value at the time of the current access
        last_accessed: Time of the most recent request touching the session
        max_inactive_ms: Idle lifetime; zero or negative means never expires
        cookie_set: When the session cookie was last (re)issued
        last_saved: When the store last persisted the record
        attributes: Opaque attribute mapping owned by the container
    """
    
    id: str = Field(frozen=True)
    context_path: str
    virtual_host: str
    created: int
    accessed: int
    last_accessed: int
    max_inactive_ms: int
    cookie_set: int = 0
    last_saved: int = 0
    attributes: dict[str, Any] = Field(default_factory=dict)
    
    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Reject empty or blank session ids."""
        if not v or not v.strip():
            raise ValueError("session id cannot be empty")
        return v
    
    def calc_expiry(self, time_ms: int) -> int:
        """
        Expiry time if the session were accessed at time_ms.
        
        Returns 0 for sessions that never expire.
        """
        if self.max_inactive_ms <= 0:
            return 0
        return time_ms + self.max_inactive_ms
    
    def is_expired_at(self, time_ms: int) -> bool:
        """Whether the session has been idle too long as of time_ms."""
        if self.max_inactive_ms <= 0:
            return False
        return self.calc_expiry(self.last_accessed) <= time_ms
