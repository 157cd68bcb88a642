"""
Ensemble — multi-persona conversation engine.

Console runner: wires profile -> completion backend -> ConversationManager
and chats over stdin, streaming each reply as it arrives.

Usage:
    ensemble                      # start with the default persona
    ensemble --agent dev          # start with a specific persona
    ensemble --user alice         # bind a user so personas remember things
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from config import LOG_LEVEL
from core import ConversationManager
from errors import CompletionError, EnsembleError
from inference import create_backend
from settings import get_profile

logger = logging.getLogger(__name__)

COMMANDS = {
    "/switch <agent>": "hand the conversation to another persona",
    "/agents": "list personas",
    "/suggestions": "show queued handoff suggestions",
    "/clear": "wipe the conversation history",
    "/quit": "exit",
}


def configure_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_manager(user_id: Optional[str] = None) -> ConversationManager:
    return ConversationManager(create_backend(), user_id=user_id)


def _print_agents(manager: ConversationManager, active_id: str):
    for agent in manager.registry.all():
        marker = "*" if agent.id == active_id else " "
        print(f" {marker} {agent.id:<10} {agent.name} ({agent.role})")


def _handle_command(manager: ConversationManager, conversation_id: str, line: str) -> bool:
    """Run one slash command. Returns False when the loop should stop."""
    command, _, arg = line.partition(" ")
    arg = arg.strip()
    if command == "/quit":
        return False
    if command == "/switch":
        if not manager.switch_agent(conversation_id, arg):
            print(f"Unknown agent: {arg or '(none)'}")
        else:
            print(manager.get_conversation_history(conversation_id)[-1].content)
    elif command == "/agents":
        _print_agents(manager, manager.get_conversation(conversation_id).active_agent_id)
    elif command == "/suggestions":
        suggestions = manager.get_collaboration_suggestions(conversation_id)
        if not suggestions:
            print("No suggestions.")
        for s in suggestions:
            print(f"  {s.from_agent} -> {s.to_agent}: {s.reason}")
    elif command == "/clear":
        manager.clear_conversation(conversation_id)
        print("Conversation cleared.")
    else:
        print("Commands:")
        for usage, help_text in COMMANDS.items():
            print(f"  {usage:<17} {help_text}")
    return True


async def chat(manager: ConversationManager, agent_id: Optional[str] = None):
    conversation_id = manager.create_conversation(agent_id)
    greeting = manager.get_active_agent(conversation_id).greeting
    print(greeting)

    while True:
        try:
            line = (await asyncio.to_thread(input, "> ")).strip()
        except EOFError:
            break
        if not line:
            continue
        if line.startswith("/"):
            if not _handle_command(manager, conversation_id, line):
                break
            continue

        name = manager.get_active_agent(conversation_id).name
        print(f"{name}: ", end="", flush=True)
        try:
            async for delta in manager.stream_message(conversation_id, line):
                print(delta, end="", flush=True)
        except CompletionError as e:
            print()
            logger.error("Turn failed: %s", e)
            continue
        print()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Ensemble multi-persona chat")
    parser.add_argument("--agent", help="Persona to start with")
    parser.add_argument("--user", help="User id for persona memory")
    parser.add_argument("--log-level", default=LOG_LEVEL,
                        help="Logging level (default from profile)")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    logger.info("Starting %s", get_profile().system.name)
    try:
        manager = build_manager(args.user)
        asyncio.run(chat(manager, args.agent))
    except (EnsembleError, ValueError) as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
