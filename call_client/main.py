"""
Console client for talking to the agent from a terminal.

Starts (or joins) a call, prints agent replies and system events as they
arrive, and sends every typed line as a user utterance.

Usage:
    python -m call_client.main [--http-url URL] [--ws-url URL] [--join ID] [--audio]

Commands typed at the prompt:
    /interrupt  stop the agent's current response
    /quit       end the call and exit
"""

import argparse
import asyncio
import logging
import os
import sys

from call_client.audio.players import NullAudioPlayer
from call_client.client import CallClient
from call_client.config.constants import LOGGER_NAME
from call_client.config.logging_config import configure_logging
from call_client.config.settings import CallClientSettings
from call_client.exceptions import CallClientError, NotConnectedError
from call_client.models.messages import CallStatus, Message, MessageKind

logger = logging.getLogger(LOGGER_NAME)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Talk to the conversational agent")
    parser.add_argument(
        "--http-url",
        default=None,
        help="Conversations peer base address (default: CALL_CLIENT_HTTP_URL env var)",
    )
    parser.add_argument(
        "--ws-url",
        default=None,
        help="Websocket gateway base address (default: CALL_CLIENT_WS_URL env var)",
    )
    parser.add_argument("--join", metavar="CONVERSATION_ID", help="Join an existing conversation")
    parser.add_argument(
        "--audio",
        action="store_true",
        help="Play synthesized speech through the speakers (requires PyAudio)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING or LOG_LEVEL env var)",
    )
    return parser.parse_args(argv)


def build_settings(args) -> CallClientSettings:
    settings = CallClientSettings.from_env()
    overrides = {}
    if args.http_url:
        overrides["http_base_url"] = args.http_url.rstrip("/")
    if args.ws_url:
        overrides["ws_base_url"] = args.ws_url.rstrip("/")
    return settings.model_copy(update=overrides)


def print_message(message: Message) -> None:
    if message.kind == MessageKind.AGENT_TEXT:
        print(f"agent> {message.content}")
    elif message.kind == MessageKind.USER_TEXT:
        print(f"you> {message.content}")
    elif message.kind == MessageKind.SYSTEM:
        print(f"[{message.event_type or 'system'}] {message.content}")


def print_status(status: CallStatus) -> None:
    print(f"[status] {status.connection_state.value} (conversation {status.conversation_id})")


async def run_console(args) -> int:
    if args.audio:
        from call_client.audio.pyaudio_player import PyAudioPlayer

        player = PyAudioPlayer()
    else:
        player = NullAudioPlayer()

    client = CallClient(build_settings(args), player=player)
    client.on_message(
        print_message, kinds=[MessageKind.AGENT_TEXT, MessageKind.USER_TEXT, MessageKind.SYSTEM]
    )
    client.on_status_change(print_status)

    try:
        if args.join:
            await client.join_call(args.join)
        else:
            result = await client.start_call()
            print(f"Started conversation {result.conversation_id}")
    except CallClientError as e:
        logger.error(f"Could not start call: {e}")
        await client.close()
        return 1

    try:
        while True:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                break
            text = line.strip()
            if not text:
                continue
            if text == "/quit":
                break
            try:
                if text == "/interrupt":
                    await client.send_interrupt()
                else:
                    await client.send_message(text)
            except NotConnectedError as e:
                print(f"[error] {e}")
    finally:
        await client.close()
    return 0


def main(argv=None):
    """Main entry point for the console client."""
    args = parse_args(argv)
    configure_logging(args.log_level, log_to_file=False)
    try:
        return asyncio.run(run_console(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
