from fastapi import APIRouter, HTTPException, status, Depends, Query
from app.models.ticket import TicketCreate, MessageCreate, TicketRating, TicketStatusUpdate
from app.deps.auth_deps import get_current_user
from app.services.support_service import (
    create_ticket, fetch_tickets, fetch_ticket_with_messages, add_user_message, add_admin_reply, update_ticket_status
)
from app.utils.admin import is_user_admin
from app.utils.enums.ticket import TicketStatus
from app.utils.mongo import convert_mongo


router = APIRouter()
admin_router = APIRouter()


@router.post("/tickets", status_code=status.HTTP_201_CREATED)
async def open_ticket(payload: TicketCreate, current_user = Depends(get_current_user)):
    try:
        ticket = await create_ticket(current_user["_id"], payload)
        return {"message": "Ticket Created Successfully", "result": convert_mongo(ticket)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while creating ticket: {str(e)}"
        )


@router.get("/tickets")
async def get_my_tickets(current_user = Depends(get_current_user)):
    try:
        tickets = await fetch_tickets(user_id=current_user["_id"])
        return {"message": "Tickets Fetched Successfully", "result": convert_mongo(tickets)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching tickets: {str(e)}"
        )


@router.get("/tickets/{id}")
async def get_my_ticket(id: str, current_user = Depends(get_current_user)):
    try:
        ticket = await fetch_ticket_with_messages(id, user_id=current_user["_id"])
        return {"message": "Ticket Fetched Successfully", "result": convert_mongo(ticket)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching ticket: {str(e)}"
        )


@router.post("/tickets/{id}/messages")
async def send_message(id: str, payload: MessageCreate, current_user = Depends(get_current_user)):
    try:
        await add_user_message(id, current_user["_id"], payload.message)
        return {"message": "Message Sent Successfully"}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while sending message: {str(e)}"
        )


@router.post("/tickets/{id}/close")
async def close_ticket(id: str, current_user = Depends(get_current_user)):
    try:
        ticket = await update_ticket_status(id, TicketStatus.CLOSED, user_id=current_user["_id"])
        return {"message": "Ticket Closed Successfully", "result": convert_mongo(ticket)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while closing ticket: {str(e)}"
        )


@router.post("/tickets/{id}/rate")
async def rate_ticket(id: str, payload: TicketRating, current_user = Depends(get_current_user)):
    try:
        ticket = await update_ticket_status(id, TicketStatus.CLOSED, user_id=current_user["_id"], rating=payload.rating)
        return {"message": "Ticket Rated Successfully", "result": convert_mongo(ticket)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while rating ticket: {str(e)}"
        )


@admin_router.get("/tickets")
async def get_all_tickets(status_filter: str = Query(None, alias="status"), current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        tickets = await fetch_tickets(status_filter=status_filter)
        return {"message": "Tickets Fetched Successfully", "result": convert_mongo(tickets)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching tickets: {str(e)}"
        )


@admin_router.get("/tickets/{id}")
async def get_ticket(id: str, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        ticket = await fetch_ticket_with_messages(id)
        return {"message": "Ticket Fetched Successfully", "result": convert_mongo(ticket)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching ticket: {str(e)}"
        )


@admin_router.post("/tickets/{id}/reply")
async def reply_to_ticket(id: str, payload: MessageCreate, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        await add_admin_reply(id, current_user["_id"], payload.message)
        return {"message": "Reply Sent Successfully"}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while sending reply: {str(e)}"
        )


@admin_router.patch("/tickets/{id}")
async def set_ticket_status(id: str, payload: TicketStatusUpdate, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        ticket = await update_ticket_status(id, payload.status)
        return {"message": "Ticket Updated Successfully", "result": convert_mongo(ticket)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while updating ticket: {str(e)}"
        )
