from convo_engine.agent.conversation_agent import ConversationAgent, resolve_chunking_policy
from convo_engine.agent.reply_generator import (
    OpenAIReplyGenerator,
    ReplyRequest,
    StaticReplyGenerator,
)

__all__ = [
    "ConversationAgent", "resolve_chunking_policy",
    "OpenAIReplyGenerator", "ReplyRequest", "StaticReplyGenerator",
]
