"""
Session data store abstraction.

This module defines the interface a web container's session manager uses
to persist sessions outside the process, so that sessions survive
restarts and can be shared between server instances.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from session.record import SessionRecord


class SessionDataStore(ABC):
    """
    Abstract base class for session persistence.
    
    The container owns the session lifecycle and the in-memory cache; it
    calls store/load/exists/delete as sessions are touched and invalidated.
    Implementations are synchronous and may block the calling thread.
    """
    
    def start(self) -> None:
        """Acquire resources needed by the store. Errors propagate to the host."""
    
    def stop(self) -> None:
        """Release resources acquired by start(). Errors propagate to the host."""
    
    @abstractmethod
    def store(self, session_id: str, record: SessionRecord) -> None:
        """
        Persist a session record.
        
        Args:
            session_id: Identifier of the session being saved.
            record: The record to persist. Its last_saved is updated on success.
            
        Raises:
            AppException: If the record fails validation.
            redis.exceptions.RedisError: If the store cannot be reached.
        """
        pass
    
    @abstractmethod
    def load(self, session_id: str) -> Optional[SessionRecord]:
        """
        Load a session record.
        
        Args:
            session_id: Identifier of the session to load.
            
        Returns:
            The record, or None if no such session is stored.
            
        Raises:
            SessionDataError: If the stored fields cannot be decoded.
            redis.exceptions.RedisError: If the store cannot be reached.
        """
        pass
    
    @abstractmethod
    def exists(self, session_id: str) -> bool:
        """Whether a record is stored for session_id."""
        pass
    
    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """
        Delete a session record.
        
        Idempotent: deleting a missing session returns False.
        
        Returns:
            True if a record was removed, False if none existed.
        """
        pass
    
    @abstractmethod
    def get_expired(self, candidates: Iterable[str]) -> set[str]:
        """
        Select the ids among candidates whose sessions have expired.
        """
        pass
    
    def is_passivating(self) -> bool:
        """Whether the container must passivate attributes before storing."""
        return False
    
    @abstractmethod
    def health_check(self) -> bool:
        """
        Check connectivity and health of the session store.
        
        Note:
            This method should not raise exceptions - connectivity issues
            should be caught and result in a False return value.
        """
        pass
