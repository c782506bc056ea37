"""
Event publishing to the outbound bus.

``EventBridgePublisher`` puts one entry per call with boto3 and turns
failed entries or client errors into ``PublishError``. The in-memory
``RecordingPublisher`` keeps every event for tests and local simulation.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from convo_engine.config import AwsConfig, settings
from convo_engine.errors import PublishError

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    def publish(self, source: str, detail_type: str, detail: dict[str, Any]) -> None:
        ...


class EventBridgePublisher:
    """Publishes events to an EventBridge bus."""

    def __init__(self, client: Any = None, config: AwsConfig = settings.aws) -> None:
        self.config = config
        self._client = client

    @property
    def client(self) -> Any:
        """Create the boto3 EventBridge client on first use."""
        if self._client is None:
            self._client = boto3.client("events", region_name=self.config.region)
        return self._client

    def publish(self, source: str, detail_type: str, detail: dict[str, Any]) -> None:
        entry = {
            "Source": source,
            "DetailType": detail_type,
            "Detail": json.dumps(detail, default=str),
            "EventBusName": self.config.event_bus_name,
        }
        try:
            response = self.client.put_events(Entries=[entry])
        except (BotoCoreError, ClientError) as exc:
            raise PublishError(detail_type, str(exc)) from exc

        if response.get("FailedEntryCount", 0):
            failed = response.get("Entries", [{}])[0]
            reason = failed.get("ErrorMessage") or failed.get("ErrorCode") or "unknown error"
            raise PublishError(detail_type, reason)
        logger.debug("Published %s from %s", detail_type, source)


@dataclass
class PublishedEvent:
    source: str
    detail_type: str
    detail: dict[str, Any]


@dataclass
class RecordingPublisher:
    """Keeps published events in memory. Indexes in ``fail_on`` raise PublishError."""

    events: list[PublishedEvent] = field(default_factory=list)
    fail_on: set[int] = field(default_factory=set)
    _attempts: int = 0

    def publish(self, source: str, detail_type: str, detail: dict[str, Any]) -> None:
        attempt = self._attempts
        self._attempts += 1
        if attempt in self.fail_on:
            raise PublishError(detail_type, f"simulated failure on attempt {attempt}")
        self.events.append(PublishedEvent(source, detail_type, detail))

    def of_type(self, detail_type: str) -> list[PublishedEvent]:
        return [event for event in self.events if event.detail_type == detail_type]

    def last(self) -> Optional[PublishedEvent]:
        return self.events[-1] if self.events else None
