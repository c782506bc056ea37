"""
Local simulation entry point.

Runs one inbound chat message through the real router, goal resolution,
chunking and paced delivery with in-memory collaborators and a canned
LLM reply. No AWS, no API keys.

Usage:
    python main.py simulate "Hi"
    python main.py simulate "can we do later than 6" --goal scheduling
    python main.py simulate "Hi" --personas 2 --realtime
"""

import argparse
import asyncio
import random
import sys

from convo_engine.agent.conversation_agent import ConversationAgent
from convo_engine.agent.reply_generator import StaticReplyGenerator
from convo_engine.routing.directories import (
    InMemoryChannelDirectory,
    InMemoryChannelStateStore,
    InMemoryCompanyDirectory,
    InMemoryContactDirectory,
    InMemoryPersonaDirectory,
)
from convo_engine.routing.origin_router import OriginRouter
from convo_engine.routing.publisher import RecordingPublisher
from convo_engine.schemas.directory_schema import ChannelRecord, CompanyInfo, PersonaRecord
from convo_engine.schemas.goal_schema import ChannelState, Goal
from convo_engine.utils import to_iso, utc_now

GREEN = "\033[92m"
YELLOW = "\033[93m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

TENANT_ID = "tenant-demo"
CHANNEL_ID = "channel-demo"
HUMAN_ID = "human-1"

CANNED_REPLY = (
    "Great to hear from you, and thanks for reaching out about training with us! "
    "We have evening sessions most weekdays and a few mornings too. "
    "Want me to find a time that fits your schedule?"
)

BUSINESS_HOURS = {
    "monday": [{"from": "9", "to": "12"}, {"from": "17", "to": "21"}],
    "tuesday": [{"from": "17", "to": "21"}],
    "wednesday": [{"from": "9", "to": "12"}, {"from": "17", "to": "21"}],
    "thursday": [{"from": "17", "to": "21"}],
    "saturday": [{"from": "8", "to": "12"}],
}

DEMO_GOALS = {
    "contact": Goal(goal_id="collect_contact_info", fields_needed=["email", "phone"]),
    "identity": Goal(goal_id="identity", fields_needed=["firstName", "lastName"]),
    "scheduling": Goal(
        goal_id="schedule_consultation",
        goal_type="scheduling",
        fields_needed=["preferredDate", "preferredTime"],
        fields_captured={"preferredTime": "evening"},
    ),
}


class _FastSleep:
    """Prints the pacing delay instead of waiting for it."""

    async def __call__(self, seconds: float) -> None:
        print(f"{DIM}  ...waiting {seconds:.2f}s{RESET}")


def _build(args: argparse.Namespace) -> tuple[OriginRouter, RecordingPublisher, StaticReplyGenerator]:
    persona_ids = [f"persona-{i + 1}" for i in range(args.personas)]

    channels = InMemoryChannelDirectory()
    channels.add(ChannelRecord(channel_id=CHANNEL_ID, tenant_id=TENANT_ID, bot_employee_ids=persona_ids))

    personas = InMemoryPersonaDirectory()
    for index, persona_id in enumerate(persona_ids):
        personas.add(PersonaRecord(
            persona_id=persona_id,
            tenant_id=TENANT_ID,
            name=f"Coach {chr(ord('A') + index)}",
            verbosity=args.verbosity,
        ))

    companies = InMemoryCompanyDirectory()
    companies.add(TENANT_ID, CompanyInfo(tenant_id=TENANT_ID, name="Demo Gym", business_hours=BUSINESS_HOURS))

    states = InMemoryChannelStateStore()
    if args.goal:
        states.put(CHANNEL_ID, ChannelState(channel_id=CHANNEL_ID, active_goal=DEMO_GOALS[args.goal]))

    publisher = RecordingPublisher()
    generator = StaticReplyGenerator(args.reply)
    agent = ConversationAgent(
        generator=generator,
        publisher=publisher,
        companies=companies,
        personas=personas,
        channel_states=states,
        sleep=asyncio.sleep if args.realtime else _FastSleep(),
        rng=random.Random(args.seed),
    )
    router = OriginRouter(
        responder=agent.respond,
        channels=channels,
        personas=personas,
        contacts=InMemoryContactDirectory(),
        publisher=publisher,
    )
    return router, publisher, generator


async def _simulate(args: argparse.Namespace) -> int:
    router, publisher, generator = _build(args)
    event = {
        "source": "demo.chat",
        "detail-type": "chat.message.available",
        "detail": {
            "tenantId": TENANT_ID,
            "channelId": CHANNEL_ID,
            "userId": "persona-1",
            "senderId": HUMAN_ID,
            "content": args.text,
            "messageId": f"msg-{int(utc_now().timestamp())}",
            "timestamp": to_iso(utc_now()),
        },
    }
    print(f"\n{BOLD}Inbound:{RESET} {args.text!r}")
    result = await router.route(event)
    print(f"{BOLD}Outcome:{RESET} {result.outcome.value} {result.reason}")

    for request in generator.requests:
        goal_lines = [line for line in request.system_prompt.splitlines() if line.startswith("GOAL:")]
        if goal_lines:
            print(f"{YELLOW}{goal_lines[0]}{RESET}")

    for published in publisher.of_type("chat.message"):
        detail = published.detail
        print(
            f"{GREEN}[{detail['timestamp']}] {detail['userName']} "
            f"({detail['currentChunk']}/{detail['totalChunks']}):{RESET} {detail['message']}"
        )
    return 0


def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(description="Conversation engine local tools")
    commands = parser.add_subparsers(dest="command", required=True)

    simulate = commands.add_parser("simulate", help="Route one chat message end to end")
    simulate.add_argument("text", help="Inbound message text")
    simulate.add_argument("--reply", default=CANNED_REPLY, help="Canned LLM reply")
    simulate.add_argument("--personas", type=int, default=1, help="Bot personas on the channel")
    simulate.add_argument("--verbosity", type=int, default=5)
    simulate.add_argument("--goal", choices=sorted(DEMO_GOALS), default=None)
    simulate.add_argument("--seed", type=int, default=7)
    simulate.add_argument("--realtime", action="store_true", help="Actually wait between chunks")

    args = parser.parse_args(argv)
    if args.command == "simulate":
        return asyncio.run(_simulate(args))
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
