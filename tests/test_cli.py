"""Tests for the gpt-reply command line."""

from __future__ import annotations

import os
import tempfile
from unittest.mock import MagicMock, patch

import httpx
import pytest
import yaml
from click.testing import CliRunner

from gpt_reply.cli import main
from gpt_reply.errors import TransportError
from gpt_reply.history import HistoryStore
from gpt_reply.llm.client import GPTClient
from gpt_reply.llm.transport import CompletionTransport
from gpt_reply.types import (
    Choice,
    ChoiceMessage,
    Completion,
    ResponseEnvelope,
    Role,
    Turn,
)


@pytest.fixture
def config_path():
    fd, path = tempfile.mkstemp(suffix=".yaml")
    with os.fdopen(fd, "w") as f:
        yaml.dump({"api_key": "sk-test", "model": "gpt-3.5-turbo-0301"}, f)
    yield path
    os.unlink(path)


class TestAsk:
    def test_prints_reply(self, config_path: str):
        with patch("gpt_reply.cli.GPTClient") as client_cls:
            client = client_cls.return_value
            client.complete.return_value = Completion("Hello there", "stop")
            result = CliRunner().invoke(
                main, ["-c", config_path, "-u", "alice", "ask", "hi"],
            )

        assert result.exit_code == 0, result.output
        assert "Hello there" in result.output
        assert "finish_reason=stop" in result.output
        client.complete.assert_called_once_with("alice", "hi", False)

    def test_assistant_flag(self, config_path: str):
        with patch("gpt_reply.cli.GPTClient") as client_cls:
            client = client_cls.return_value
            client.complete.return_value = Completion("ok", "stop")
            result = CliRunner().invoke(
                main, ["-c", config_path, "ask", "--assistant", "earlier"],
            )

        assert result.exit_code == 0, result.output
        client.complete.assert_called_once_with("local", "earlier", True)

    def test_error_exits_nonzero(self, config_path: str):
        with patch("gpt_reply.cli.GPTClient") as client_cls:
            client = client_cls.return_value
            client.complete.side_effect = TransportError(
                "execute", httpx.ConnectError("down"),
            )
            result = CliRunner().invoke(main, ["-c", config_path, "ask", "hi"])

        assert result.exit_code == 1
        assert "execute error" in result.output

    def test_missing_config_file(self):
        client_cls = MagicMock()
        with patch("gpt_reply.cli.GPTClient", client_cls):
            result = CliRunner().invoke(
                main, ["-c", "/tmp/nonexistent_gpt_reply_12345.yaml", "ask", "hi"],
            )

        assert result.exit_code == 1
        assert "Config file not found" in result.output
        client_cls.assert_not_called()


class TestChat:
    @pytest.fixture(autouse=True)
    def _home(self, monkeypatch, tmp_path):
        # The prompt history file lives under ~/.gpt_reply
        monkeypatch.setenv("HOME", str(tmp_path))

    @pytest.fixture
    def transport(self) -> MagicMock:
        transport = MagicMock(spec=CompletionTransport)
        transport.send.return_value = ResponseEnvelope(choices=[
            Choice(message=ChoiceMessage(role="assistant", content="Hi back"),
                   finish_reason="stop"),
        ])
        return transport

    def _run(self, config_path: str, transport: MagicMock, lines: list):
        history = HistoryStore()
        with patch("gpt_reply.cli.GPTClient") as client_cls, \
             patch("gpt_reply.cli.PromptSession") as session_cls:
            client_cls.side_effect = lambda source: GPTClient(
                source, history=history, transport=transport,
            )
            session_cls.return_value.prompt.side_effect = lines
            result = CliRunner().invoke(main, ["-c", config_path, "-u", "alice", "chat"])
        return result, history

    def test_history_shows_stored_turns(self, config_path: str, transport: MagicMock):
        result, history = self._run(
            config_path, transport, ["hello there", "/history", "/quit"],
        )

        assert result.exit_code == 0, result.output
        assert "Hi back" in result.output
        assert "History: alice" in result.output
        assert "hello there" in result.output
        assert history.read("alice") == [Turn(Role.USER, "hello there")]

    def test_assistant_turn_not_stored(self, config_path: str, transport: MagicMock):
        result, history = self._run(
            config_path, transport, ["question", "/assistant an answer", "/quit"],
        )

        assert result.exit_code == 0, result.output
        sent = transport.send.call_args[0][0]
        assert sent.messages == [
            Turn(Role.USER, "question"),
            Turn(Role.ASSISTANT, "an answer"),
        ]
        assert history.read("alice") == [Turn(Role.USER, "question")]

    def test_empty_history(self, config_path: str, transport: MagicMock):
        result, _ = self._run(config_path, transport, ["/history", "/exit"])

        assert result.exit_code == 0, result.output
        assert "No history." in result.output
        transport.send.assert_not_called()

    def test_quit_exits_cleanly(self, config_path: str, transport: MagicMock):
        result, _ = self._run(config_path, transport, ["", "/quit", "never sent"])

        assert result.exit_code == 0, result.output
        assert "Goodbye!" in result.output
        transport.send.assert_not_called()

    def test_eof_exits_cleanly(self, config_path: str, transport: MagicMock):
        result, _ = self._run(config_path, transport, ["hi", EOFError()])

        assert result.exit_code == 0, result.output
        assert "Goodbye!" in result.output
        assert transport.send.call_count == 1

    def test_error_keeps_session_open(self, config_path: str, transport: MagicMock):
        transport.send.side_effect = [
            TransportError("execute", httpx.ConnectError("down")),
        ] * 3 + [transport.send.return_value]
        with patch("gpt_reply.llm.client.time.sleep"):
            result, _ = self._run(config_path, transport, ["first", "second", "/quit"])

        assert result.exit_code == 0, result.output
        assert "execute error" in result.output
        assert "Hi back" in result.output
