"""
AWS Lambda entry point.

Wires the router and the persona reply turn to the DynamoDB directories,
the EventBridge publisher and the OpenAI reply generator. Collaborators
are built once per container and reused across warm invocations.

Usage (Lambda handler setting):
    convo_engine.handler.handler
"""

import asyncio
import logging
from typing import Any, Optional

from convo_engine.agent.conversation_agent import ConversationAgent
from convo_engine.agent.reply_generator import OpenAIReplyGenerator
from convo_engine.config import settings
from convo_engine.routing.directories import (
    DynamoChannelDirectory,
    DynamoChannelStateStore,
    DynamoCompanyDirectory,
    DynamoContactDirectory,
    DynamoPersonaDirectory,
)
from convo_engine.routing.origin_router import OriginRouter
from convo_engine.routing.publisher import EventBridgePublisher

logger = logging.getLogger(__name__)

_router: Optional[OriginRouter] = None


def build_router() -> OriginRouter:
    """Router backed by the AWS collaborators named in configuration."""
    publisher = EventBridgePublisher(config=settings.aws)
    personas = DynamoPersonaDirectory(config=settings.aws)
    agent = ConversationAgent(
        generator=OpenAIReplyGenerator(config=settings.model),
        publisher=publisher,
        companies=DynamoCompanyDirectory(config=settings.aws),
        personas=personas,
        channel_states=DynamoChannelStateStore(config=settings.aws),
    )
    return OriginRouter(
        responder=agent.respond,
        channels=DynamoChannelDirectory(config=settings.aws),
        personas=personas,
        contacts=DynamoContactDirectory(config=settings.aws),
        publisher=publisher,
        config=settings.router,
    )


def get_router() -> OriginRouter:
    global _router
    if _router is None:
        _router = build_router()
    return _router


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Route one EventBridge event. Identity and validation errors propagate."""
    result = asyncio.run(get_router().route(event))
    summary = {
        "outcome": result.outcome.value,
        "reason": result.reason,
        "personas": [invocation.user_id for invocation in result.invocations],
    }
    logger.info("Handler finished: %s", summary)
    return summary
