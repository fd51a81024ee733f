from __future__ import annotations

import sys

import pytest

from chat_client import __main__ as cli


def test_main_requires_a_session_token(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["chat-client"])
    monkeypatch.setattr(cli.settings, "SESSION_TOKEN", "")

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert "SESSION_TOKEN" in str(exc_info.value)
