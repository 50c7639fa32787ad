"""
Unit tests for the SessionRecord model.
"""

import pytest
from pydantic import ValidationError

from session.record import SessionRecord


def make_record(**overrides) -> SessionRecord:
    fields = {
        "id": "abc",
        "context_path": "/",
        "virtual_host": "0.0.0.0",
        "created": 1_000,
        "accessed": 1_000,
        "last_accessed": 2_000,
        "max_inactive_ms": 500,
    }
    fields.update(overrides)
    return SessionRecord(**fields)


class TestSessionRecord:
    """Tests for SessionRecord validation and expiry helpers."""
    
    def test_defaults(self):
        record = make_record()
        
        assert record.cookie_set == 0
        assert record.last_saved == 0
        assert record.attributes == {}
    
    @pytest.mark.parametrize("session_id", ["", "   "])
    def test_empty_id_rejected(self, session_id):
        with pytest.raises(ValidationError, match="session id cannot be empty"):
            make_record(id=session_id)
    
    def test_id_cannot_change(self):
        record = make_record()
        
        with pytest.raises(ValidationError):
            record.id = "other"
        assert record.id == "abc"
    
    def test_mutable_fields(self):
        record = make_record()
        
        record.last_accessed = 3_000
        record.attributes["user"] = "alice"
        
        assert record.last_accessed == 3_000
        assert record.attributes == {"user": "alice"}
    
    def test_calc_expiry(self):
        assert make_record(max_inactive_ms=500).calc_expiry(10_000) == 10_500
        assert make_record(max_inactive_ms=0).calc_expiry(10_000) == 0
        assert make_record(max_inactive_ms=-1).calc_expiry(10_000) == 0
    
    def test_is_expired_at(self):
        record = make_record(last_accessed=2_000, max_inactive_ms=500)
        
        assert record.is_expired_at(2_499) is False
        assert record.is_expired_at(2_500) is True
    
    def test_never_expires(self):
        record = make_record(max_inactive_ms=-1)
        
        assert record.is_expired_at(10**15) is False
