"""CLI entry point: python main.py --conversation <id>"""

import argparse
import asyncio
import sys

from flipstaq.api import MessageService
from flipstaq.auth import token_store_from_settings
from flipstaq.errors import FlipStaqError
from flipstaq.logging_config import LogFormat, LoggingConfig, LogLevel, configure_logging
from flipstaq.realtime import (
    ChatMessage,
    ClientEvent,
    RealtimeContext,
    TypingEvent,
    UserStatus,
)
from flipstaq.settings import get_settings


def format_message(message: ChatMessage) -> str:
    sender = (message.sender or {}).get("username") or message.sender_id
    text = message.content or ""
    if message.attachments:
        names = ", ".join(a.file_name for a in message.attachments)
        text = f"{text} [attachments: {names}]".strip()
    return f"[{message.created_at}] {sender}: {text}"


async def run_chat(args: argparse.Namespace) -> int:
    settings = get_settings()
    token_store = token_store_from_settings(settings)
    if not token_store.get_token():
        print("No auth token found. Set FLIPSTAQ_AUTH_TOKEN or log in first.", file=sys.stderr)
        return 1

    rt = RealtimeContext.from_settings(settings, token_store=token_store)
    conversation_id = args.conversation

    async with MessageService(settings, token_store, channel=rt.client) as service:
        if args.history:
            history = await service.get_messages(conversation_id, limit=args.history)
            for message in history:
                print(format_message(message))

        def on_message(message: ChatMessage) -> None:
            if message.conversation_id == conversation_id:
                print(format_message(message))

        def on_status(status: UserStatus) -> None:
            state = "online" if status.is_online else "offline"
            print(f"* {status.username or status.user_id} is {state}")

        def on_typing(event: TypingEvent) -> None:
            if event.conversation_id == conversation_id and event.is_typing:
                print(f"* {event.username or event.user_id} is typing...")

        async def rejoin(_: dict) -> None:
            # the relay forgets room membership on every new socket
            await rt.client.join_conversation(conversation_id)

        rt.on_new_message(on_message)
        rt.on_user_status_changed(on_status)
        rt.on_typing(on_typing)
        rt.client.on(ClientEvent.CONNECTED, rejoin)

        await rt.start()
        try:
            while True:
                line = await asyncio.to_thread(sys.stdin.readline)
                if not line:
                    break
                if not line.strip():
                    continue
                try:
                    await service.send_message(line, conversation_id)
                except FlipStaqError as e:
                    print(f"! message not sent: {e.message}", file=sys.stderr)
        finally:
            await rt.client.leave_conversation(conversation_id)
            await rt.close()
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="FlipStaq - realtime chat client"
    )
    parser.add_argument(
        "--conversation", required=True,
        help="Conversation ID to join"
    )
    parser.add_argument(
        "--history", type=int, default=0,
        help="Print the last N messages before going live"
    )
    parser.add_argument(
        "--log-level", default=None, choices=[lvl.value for lvl in LogLevel],
        help="Log level (default: from FLIPSTAQ_LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--log-format", default=None, choices=[fmt.value for fmt in LogFormat],
        help="Log format (default: from FLIPSTAQ_LOG_FORMAT or console)"
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(LoggingConfig(
        level=LogLevel(args.log_level or settings.log_level.upper()),
        format=LogFormat(args.log_format or settings.log_format.lower()),
    ))

    try:
        return asyncio.run(run_chat(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
