import asyncio
import importlib
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from call_client import main as console
from call_client.exceptions import CallConnectionError, NotConnectedError
from call_client.models.messages import CallStatus, ConnectionState, Message


def test_parse_args_defaults():
    args = console.parse_args([])

    assert args.http_url is None
    assert args.ws_url is None
    assert args.join is None
    assert args.audio is False


def test_parse_args_join_and_urls():
    args = console.parse_args(
        ["--http-url", "http://backend.test", "--join", "conv-1", "--log-level", "DEBUG"]
    )

    assert args.http_url == "http://backend.test"
    assert args.join == "conv-1"
    assert args.log_level == "DEBUG"


def test_build_settings_applies_overrides():
    args = console.parse_args(["--http-url", "http://backend.test/", "--ws-url", "ws://gw.test/"])

    settings = console.build_settings(args)

    assert settings.http_base_url == "http://backend.test"
    assert settings.resolved_ws_base_url == "ws://gw.test"


def test_print_message_formats(capsys):
    console.print_message(Message.agent_text("Hi there", "conv-1"))
    console.print_message(Message.user_text("Hello", "conv-1"))
    console.print_message(Message.system("{}", "conv-1", event_type="participant_left"))

    out = capsys.readouterr().out.splitlines()
    assert out == ["agent> Hi there", "you> Hello", "[participant_left] {}"]


def test_print_status(capsys):
    console.print_status(
        CallStatus(is_connected=True, conversation_id="conv-1", connection_state=ConnectionState.CONNECTED)
    )

    assert capsys.readouterr().out.strip() == "[status] connected (conversation conv-1)"


def make_client():
    client = MagicMock()
    client.start_call = AsyncMock(return_value=MagicMock(conversation_id="conv-1"))
    client.join_call = AsyncMock()
    client.send_message = AsyncMock()
    client.send_interrupt = AsyncMock()
    client.close = AsyncMock()
    return client


def run_with_input(args, lines, client):
    lines = iter(lines)
    fake_sys = MagicMock()
    fake_sys.stdin.readline.side_effect = lambda: next(lines, "")
    with patch.object(console, "CallClient", return_value=client), patch.object(
        console, "sys", fake_sys
    ):
        return asyncio.run(console.run_console(args))


def test_run_console_sends_lines_until_quit():
    client = make_client()
    args = console.parse_args([])

    code = run_with_input(args, ["hello\n", "\n", "/interrupt\n", "/quit\n", "ignored\n"], client)

    assert code == 0
    client.start_call.assert_awaited_once()
    client.send_message.assert_awaited_once_with("hello")
    client.send_interrupt.assert_awaited_once()
    client.close.assert_awaited_once()


def test_run_console_joins_existing_conversation():
    client = make_client()
    args = console.parse_args(["--join", "conv-7"])

    run_with_input(args, [], client)

    client.join_call.assert_awaited_once_with("conv-7")
    client.start_call.assert_not_awaited()


def test_run_console_reports_send_errors(capsys):
    client = make_client()
    client.send_message.side_effect = NotConnectedError()

    code = run_with_input(console.parse_args([]), ["hello\n"], client)

    assert code == 0
    assert "[error] Not connected to call" in capsys.readouterr().out


def test_run_console_start_failure():
    client = make_client()
    client.start_call.side_effect = CallConnectionError("refused")

    code = run_with_input(console.parse_args([]), [], client)

    assert code == 1
    client.close.assert_awaited_once()


@pytest.mark.parametrize("argv", [["--log-level", "INFO"]])
def test_main_returns_exit_code(argv):
    with patch.object(console, "run_console", new=AsyncMock(return_value=0)) as run:
        assert console.main(argv) == 0

    run.assert_awaited_once()


def test_import_does_not_configure_logging():
    with patch("call_client.config.logging_config.configure_logging") as configure:
        importlib.reload(console)
    importlib.reload(console)

    configure.assert_not_called()
    assert console.logger.name == "call_client"
