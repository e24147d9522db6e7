"""
Tests for support tickets
"""
import pytest


async def open_ticket(client, headers, subject="Não recebi minha conta", message="Paguei e nada chegou"):
    response = await client.post(
        "/support/tickets",
        json={"subject": subject, "ticket_type": "problem", "priority": "high", "message": message},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["result"]


@pytest.mark.asyncio
async def test_ticket_numbers_are_sequential(client, user_headers):
    first = await open_ticket(client, user_headers)
    second = await open_ticket(client, user_headers, subject="Outra dúvida", message=None)

    assert first["ticket_number"] == 1
    assert second["ticket_number"] == 2
    assert first["status"] == "open"


@pytest.mark.asyncio
async def test_list_own_tickets_with_last_message(client, user_headers, admin_headers):
    await open_ticket(client, user_headers)

    response = await client.get("/support/tickets", headers=user_headers)
    tickets = response.json()["result"]
    assert len(tickets) == 1
    assert tickets[0]["last_message"] == "Paguei e nada chegou"

    assert (await client.get("/support/tickets", headers=admin_headers)).json()["result"] == []


@pytest.mark.asyncio
async def test_admin_reply_moves_ticket_in_progress(client, user_headers, admin_headers):
    ticket = await open_ticket(client, user_headers)

    reply = await client.post(
        f"/admin/support/tickets/{ticket['_id']}/reply",
        json={"message": "Vamos verificar."},
        headers=admin_headers,
    )
    assert reply.status_code == 200

    detail = await client.get(f"/support/tickets/{ticket['_id']}", headers=user_headers)
    result = detail.json()["result"]
    assert result["status"] == "in_progress"
    assert [m["is_admin"] for m in result["messages"]] == [False, True]
    assert result["user"]["email"] == "cliente@example.com"


@pytest.mark.asyncio
async def test_closed_ticket_rejects_user_messages(client, user_headers):
    ticket = await open_ticket(client, user_headers)

    closed = await client.post(f"/support/tickets/{ticket['_id']}/close", headers=user_headers)
    assert closed.status_code == 200
    assert closed.json()["result"]["closed_at"] is not None

    response = await client.post(
        f"/support/tickets/{ticket['_id']}/messages",
        json={"message": "Mais uma coisa"},
        headers=user_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_rating_closes_ticket(client, user_headers):
    ticket = await open_ticket(client, user_headers)

    response = await client.post(f"/support/tickets/{ticket['_id']}/rate", json={"rating": 5}, headers=user_headers)

    result = response.json()["result"]
    assert result["rating"] == 5
    assert result["status"] == "closed"


@pytest.mark.asyncio
async def test_rating_out_of_range_is_rejected(client, user_headers):
    ticket = await open_ticket(client, user_headers)
    response = await client.post(f"/support/tickets/{ticket['_id']}/rate", json={"rating": 6}, headers=user_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_admin_filters_and_resolves(client, user_headers, admin_headers):
    ticket = await open_ticket(client, user_headers)

    listing = await client.get("/admin/support/tickets", params={"status": "open"}, headers=admin_headers)
    assert len(listing.json()["result"]) == 1

    response = await client.patch(
        f"/admin/support/tickets/{ticket['_id']}",
        json={"status": "resolved"},
        headers=admin_headers,
    )
    assert response.json()["result"]["status"] == "resolved"
    assert response.json()["result"]["closed_at"] is not None

    listing = await client.get("/admin/support/tickets", params={"status": "open"}, headers=admin_headers)
    assert listing.json()["result"] == []


@pytest.mark.asyncio
async def test_user_cannot_see_admin_ticket_list(client, user_headers):
    response = await client.get("/admin/support/tickets", headers=user_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reopening_clears_closed_at(client, user_headers, admin_headers):
    ticket = await open_ticket(client, user_headers)
    url = f"/admin/support/tickets/{ticket['_id']}"

    resolved = await client.patch(url, json={"status": "resolved"}, headers=admin_headers)
    assert resolved.json()["result"]["closed_at"] is not None

    reopened = await client.patch(url, json={"status": "in_progress"}, headers=admin_headers)

    assert reopened.json()["result"]["status"] == "in_progress"
    assert reopened.json()["result"]["closed_at"] is None
