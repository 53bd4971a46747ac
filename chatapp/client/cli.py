"""Interactive terminal client.

Commands:
    /new            start a new conversation
    /list           show your chats grouped by date
    /open <id>      open a chat
    /delete <id>    delete a chat
    /exit           quit
Anything else is sent as a message.
"""
import argparse
import logging
import os

import httpx

from chatapp.client.api import ChatAPIClient, ChatAPIError
from chatapp.client.state import ChatViewState
from chatapp.client.typewriter import CHAR_DELAY, reveal

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with the assistant from a terminal")
    parser.add_argument("--base-url", default=os.environ.get("CHAT_API_URL", "http://localhost:8000"))
    parser.add_argument("--token", default=os.environ.get("CHAT_TOKEN"), help="Bearer session token")
    parser.add_argument("--user-id", default=os.environ.get("CHAT_USER_ID"))
    parser.add_argument("--delay", type=float, default=CHAR_DELAY, help="Seconds per revealed character")
    args = parser.parse_args(argv)
    if not args.token or not args.user_id:
        parser.error("--token and --user-id (or CHAT_TOKEN / CHAT_USER_ID) are required")
    return args


def print_chats(state: ChatViewState) -> None:
    if not state.chats:
        print("No chats yet.")
        return
    for label, chats in state.grouped_chats().items():
        print(f"\n{label}")
        for chat in chats:
            marker = "*" if state.active is not None and state.active.id == chat.id else " "
            print(f" {marker} {chat.id}  {chat.title}")


def print_chat(state: ChatViewState) -> None:
    chat = state.active
    print(f"\n== {chat.title} ==")
    for msg in chat.messages:
        speaker = "You" if msg.role == "user" else "Assistant"
        print(f"{speaker}: {msg.content}")


def handle_command(state: ChatViewState, line: str, delay: float) -> bool:
    """Run one input line. Returns False when the session should end."""
    command, _, arg = line.partition(" ")
    arg = arg.strip()

    if command == "/exit":
        return False
    if command == "/new":
        state.new_chat()
        print("Started a new conversation.")
    elif command == "/list":
        state.refresh()
        print_chats(state)
    elif command == "/open" and arg:
        state.open(arg)
        print_chat(state)
    elif command == "/delete" and arg:
        state.delete(arg)
        print("Chat deleted.")
    elif command.startswith("/"):
        print("Unknown command.")
    else:
        reply = state.send(line)
        if len(state.active.messages) == 2:
            print(f"[{state.active.title}]")
        print("Assistant: ", end="", flush=True)
        reveal(reply.content, delay=delay)
        state.finish_streaming()
    return True


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    with ChatAPIClient(args.base_url, args.token, args.user_id) as api:
        state = ChatViewState(api)
        print("Type a message, or /new, /list, /open <id>, /delete <id>, /exit")

        while True:
            try:
                line = input("> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if not line:
                continue

            try:
                if not handle_command(state, line, args.delay):
                    break
            except ChatAPIError as e:
                print(f"Error: {e.detail} ({e.status_code})")
            except httpx.HTTPError as e:
                print(f"Connection error: {e}")
            except ValueError as e:
                print(f"Error: {e}")


if __name__ == "__main__":
    main()
