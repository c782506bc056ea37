"""Shared test fixtures and helpers."""

import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from convo_engine.routing.directories import (
    InMemoryChannelDirectory,
    InMemoryChannelStateStore,
    InMemoryCompanyDirectory,
    InMemoryContactDirectory,
    InMemoryPersonaDirectory,
)
from convo_engine.routing.publisher import RecordingPublisher
from convo_engine.schemas.directory_schema import ChannelRecord, CompanyInfo, PersonaRecord
from convo_engine.schemas.goal_schema import ChannelState, GoalContext
from convo_engine.schemas.message_schema import AgentInvocation, MessageSource

TENANT_ID = "tenant-1"
CHANNEL_ID = "channel-1"
BOT_ID = "persona-bot"
SECOND_BOT_ID = "persona-bot-2"
HUMAN_ID = "human-1"

EVENING_HOURS = {"monday": [{"from": "17", "to": "21"}]}

WEEK_HOURS = {
    "monday": [{"from": "9", "to": "12"}, {"from": "17", "to": "21"}],
    "tuesday": [{"from": "17", "to": "21"}],
    "wednesday": [{"from": "13", "to": "16"}],
    "friday": [{"from": "6", "to": "10"}],
}


class FakeClock:
    """Deterministic clock whose ``sleep`` advances time instead of waiting."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2026, 1, 5, 12, 0, 0, tzinfo=timezone.utc)
        self.sleeps: list[float] = []

    def __call__(self) -> datetime:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += timedelta(seconds=seconds)


@dataclass
class World:
    """In-memory collaborators for router and agent tests."""

    channels: InMemoryChannelDirectory = field(default_factory=InMemoryChannelDirectory)
    personas: InMemoryPersonaDirectory = field(default_factory=InMemoryPersonaDirectory)
    companies: InMemoryCompanyDirectory = field(default_factory=InMemoryCompanyDirectory)
    states: InMemoryChannelStateStore = field(default_factory=InMemoryChannelStateStore)
    contacts: InMemoryContactDirectory = field(default_factory=InMemoryContactDirectory)
    publisher: RecordingPublisher = field(default_factory=RecordingPublisher)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def world():
    w = World()
    w.channels.add(ChannelRecord(channel_id=CHANNEL_ID, tenant_id=TENANT_ID, bot_employee_ids=[BOT_ID]))
    w.personas.add(PersonaRecord(persona_id=BOT_ID, tenant_id=TENANT_ID, name="Coach Mo", verbosity=5))
    w.companies.add(TENANT_ID, make_company(WEEK_HOURS))
    return w


def make_company(business_hours: Optional[dict[str, Any]] = None, **kwargs: Any) -> CompanyInfo:
    """Helper to create a CompanyInfo."""
    return CompanyInfo(tenant_id=TENANT_ID, name="Test Gym", business_hours=business_hours or {}, **kwargs)


def make_goal_context(
    goal_id: str = "collect_info",
    fields_needed: Optional[list[str]] = None,
    fields_captured: Optional[dict[str, Any]] = None,
    goal_type: str = "collect_info",
    business_hours: Optional[dict[str, Any]] = None,
    captured_data: Optional[dict[str, Any]] = None,
    **kwargs: Any,
) -> GoalContext:
    """Helper to create a GoalContext."""
    return GoalContext(
        goal_id=goal_id,
        goal_type=goal_type,
        fields_needed=fields_needed or [],
        fields_captured=fields_captured or {},
        company_info=make_company(business_hours) if business_hours is not None else None,
        channel_state=ChannelState(captured_data=captured_data) if captured_data is not None else None,
        **kwargs,
    )


def make_scheduling_context(
    fields_captured: Optional[dict[str, Any]] = None,
    business_hours: Optional[dict[str, Any]] = None,
    last_user_message: Optional[str] = None,
    detected_intent: Optional[str] = None,
) -> GoalContext:
    """Helper for a scheduling goal over preferredDate + preferredTime."""
    return make_goal_context(
        goal_id="schedule_consultation",
        goal_type="scheduling",
        fields_needed=["preferredDate", "preferredTime"],
        fields_captured=fields_captured,
        business_hours=WEEK_HOURS if business_hours is None else business_hours,
        last_user_message=last_user_message,
        detected_intent=detected_intent,
    )


def make_event(
    detail_type: str = "chat.message.available",
    source: str = "chat.platform",
    **detail: Any,
) -> dict[str, Any]:
    """Helper to create a raw inbound event; detail keys are camelCase."""
    body: dict[str, Any] = {
        "tenantId": TENANT_ID,
        "channelId": CHANNEL_ID,
        "userId": BOT_ID,
        "senderId": HUMAN_ID,
        "content": "Hi",
        "messageId": "msg-1",
        "timestamp": "2026-01-05T11:59:58.000Z",
    }
    body.update(detail)
    return {"source": source, "detail-type": detail_type, "detail": body}


def make_invocation(**overrides: Any) -> AgentInvocation:
    """Helper to create an AgentInvocation for a human message to BOT_ID."""
    values: dict[str, Any] = {
        "tenant_id": TENANT_ID,
        "channel_id": CHANNEL_ID,
        "user_id": BOT_ID,
        "user_name": "Coach Mo",
        "sender_id": HUMAN_ID,
        "text": "Hi",
        "message_id": "msg-1",
        "source": MessageSource.CHAT,
        "contact_key": f"channel-{CHANNEL_ID}@anonymous.com",
    }
    values.update(overrides)
    return AgentInvocation(**values)
