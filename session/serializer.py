"""
Attribute serializers for persisted sessions.

The store never interprets the serialized attribute string; it hands the
container's attribute mapping to a serializer on write and back on read.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class AttributeSerializer(ABC):
    """
    Converts a session's attribute mapping to and from a string.
    
    start() and stop() are called when the owning store starts and stops,
    so implementations can set up and release codec resources.
    """
    
    def start(self) -> None:
        """Prepare codec resources."""
    
    def stop(self) -> None:
        """Release codec resources."""
    
    @abstractmethod
    def serialize_attributes(self, attributes: dict[str, Any]) -> str:
        pass
    
    @abstractmethod
    def deserialize_attributes(self, data: str) -> dict[str, Any]:
        """
        Raises:
            ValueError: If data is not a serialized attribute mapping.
        """
        pass


class JsonAttributeSerializer(AttributeSerializer):
    """
    Stores attributes as a JSON object.
    
    Attribute values must be JSON-compatible; anything else fails at
    serialization time rather than producing a lossy record.
    """
    
    def __init__(self, sort_keys: bool = True):
        self.sort_keys = sort_keys
        self.started = False
    
    def start(self) -> None:
        if not self.started:
            self.started = True
            logger.debug("JSON attribute serializer started")
    
    def stop(self) -> None:
        if self.started:
            self.started = False
            logger.debug("JSON attribute serializer stopped")
    
    def serialize_attributes(self, attributes: dict[str, Any]) -> str:
        return json.dumps(attributes, sort_keys=self.sort_keys, separators=(",", ":"))
    
    def deserialize_attributes(self, data: str) -> dict[str, Any]:
        attributes = json.loads(data)
        if not isinstance(attributes, dict):
            raise ValueError(
                f"Expected a JSON object of attributes, got {type(attributes).__name__}"
            )
        return attributes
