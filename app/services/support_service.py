from fastapi import HTTPException, status
from pymongo import ReturnDocument
from app.db.mongo import db
from datetime import datetime
from app.utils.enums.ticket import TicketStatus, FINISHED_STATUSES
from app.utils.mongo import to_object_id
from app.utils.logger import logger


async def _next_ticket_number() -> int:
    counter = await db.counters.find_one_and_update(
        {"_id": "support_tickets"},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER
    )
    return counter["seq"]


async def _get_ticket(ticket_id, user_id=None):
    query = {"_id": to_object_id(ticket_id, "ticket id")}
    if user_id is not None:
        query["user_id"] = to_object_id(user_id, "user id")
    ticket = await db.support_tickets.find_one(query)
    if not ticket:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket Not Found")
    return ticket


async def _insert_message(ticket_id, user_id, message: str, is_admin: bool):
    now = datetime.utcnow()
    await db.support_messages.insert_one({
        "ticket_id": ticket_id,
        "user_id": to_object_id(user_id, "user id"),
        "message": message,
        "is_admin": is_admin,
        "created_at": now,
    })
    await db.support_tickets.update_one({"_id": ticket_id}, {"$set": {"updated_at": now}})


async def create_ticket(user_id, payload):
    try:
        now = datetime.utcnow()
        ticket = {
            "ticket_number": await _next_ticket_number(),
            "user_id": to_object_id(user_id, "user id"),
            "subject": payload.subject,
            "ticket_type": payload.ticket_type.value,
            "priority": payload.priority.value,
            "status": TicketStatus.OPEN.value,
            "rating": None,
            "closed_at": None,
            "created_at": now,
            "updated_at": now,
        }
        res = await db.support_tickets.insert_one(ticket)
        ticket["_id"] = res.inserted_id

        if payload.message and payload.message.strip():
            await _insert_message(res.inserted_id, user_id, payload.message.strip(), is_admin=False)

        logger.info("[SUPPORT] Ticket created", ticket_number=ticket["ticket_number"])
        return ticket
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while creating ticket: {str(e)}"
        )


async def fetch_tickets(user_id=None, status_filter: str = None):
    try:
        query = {}
        if user_id is not None:
            query["user_id"] = to_object_id(user_id, "user id")
        if status_filter:
            query["status"] = status_filter

        tickets = await db.support_tickets.find(query).sort("updated_at", -1).to_list(length=None)
        for ticket in tickets:
            last = await db.support_messages.find_one({"ticket_id": ticket["_id"]}, sort=[("created_at", -1)])
            ticket["last_message"] = last["message"] if last else None
        return tickets
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching tickets: {str(e)}"
        )


async def fetch_ticket_with_messages(ticket_id, user_id=None):
    try:
        ticket = await _get_ticket(ticket_id, user_id)
        messages = await db.support_messages.find(
            {"ticket_id": ticket["_id"]}
        ).sort("created_at", 1).to_list(length=None)

        owner = await db.users.find_one({"_id": ticket["user_id"]}, {"name": 1, "email": 1})
        ticket["user"] = owner
        ticket["messages"] = messages
        return ticket
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching ticket: {str(e)}"
        )


async def add_user_message(ticket_id, user_id, message: str):
    try:
        ticket = await _get_ticket(ticket_id, user_id)
        if ticket["status"] in FINISHED_STATUSES:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Ticket is closed")
        await _insert_message(ticket["_id"], user_id, message, is_admin=False)
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while sending message: {str(e)}"
        )


async def add_admin_reply(ticket_id, admin_id, message: str):
    try:
        ticket = await _get_ticket(ticket_id)
        await _insert_message(ticket["_id"], admin_id, message, is_admin=True)
        if ticket["status"] == TicketStatus.OPEN.value:
            await db.support_tickets.update_one(
                {"_id": ticket["_id"]},
                {"$set": {"status": TicketStatus.IN_PROGRESS.value}}
            )
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while sending reply: {str(e)}"
        )


async def update_ticket_status(ticket_id, new_status: TicketStatus, user_id=None, rating: int = None):
    try:
        ticket = await _get_ticket(ticket_id, user_id)
        now = datetime.utcnow()
        update_data = {"status": new_status.value, "updated_at": now}
        if new_status.value in FINISHED_STATUSES:
            update_data["closed_at"] = now
        else:
            update_data["closed_at"] = None
        if rating is not None:
            update_data["rating"] = rating

        await db.support_tickets.update_one({"_id": ticket["_id"]}, {"$set": update_data})
        return await db.support_tickets.find_one({"_id": ticket["_id"]})
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while updating ticket: {str(e)}"
        )
