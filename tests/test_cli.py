"""Tests for the chat CLI helpers."""

import argparse

import pytest

import main
from flipstaq.realtime import Attachment, ChatMessage


class TestFormatMessage:
    """Transcript lines."""

    def test_uses_sender_username(self):
        message = ChatMessage(
            id="m1",
            sender_id="u2",
            content="hello",
            created_at="2024-05-01T10:00:00Z",
            sender={"username": "buyer"},
        )
        assert main.format_message(message) == "[2024-05-01T10:00:00Z] buyer: hello"

    def test_falls_back_to_sender_id_and_lists_attachments(self):
        message = ChatMessage(
            id="m1",
            sender_id="u2",
            created_at="t",
            attachments=[Attachment(file_name="a.png"), Attachment(file_name="b.pdf")],
        )
        assert main.format_message(message) == "[t] u2: [attachments: a.png, b.pdf]"


class TestRunChat:
    """Startup checks."""

    @pytest.mark.asyncio
    async def test_missing_token_exits_nonzero(self, monkeypatch, tmp_path, capsys):
        monkeypatch.setenv("FLIPSTAQ_AUTH_TOKEN", "")
        monkeypatch.setenv("FLIPSTAQ_TOKEN_FILE", str(tmp_path / "absent.json"))
        args = argparse.Namespace(conversation="c1", history=0)
        assert await main.run_chat(args) == 1
        assert "No auth token found" in capsys.readouterr().err
