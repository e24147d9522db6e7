"""
Tests for the account delivery mail
"""
from unittest.mock import AsyncMock

import pytest

import app.utils.email as email_utils


@pytest.mark.asyncio
async def test_account_data_is_html_escaped(monkeypatch):
    send = AsyncMock()
    monkeypatch.setattr(email_utils.fm, "send_message", send)

    await email_utils.send_account_delivery_email(
        "cliente@example.com", "Plano <VIP>", "login: a&b / senha: <x>",
    )

    message = send.call_args.args[0]
    assert "Plano &lt;VIP&gt;" in message.body
    assert "login: a&amp;b / senha: &lt;x&gt;" in message.body
    assert "<x>" not in message.body
