"""Forums, direct messages and notifications."""
from typing import Optional

from fastapi import APIRouter, Body, Response
from fastapi.responses import JSONResponse

from config import DEFAULT_MESSAGE_LIMIT
from security import Operation, require_role, require_user
from services import forums, messages, notifications

router = APIRouter()


@router.get("/api/forums")
def api_forums():
    return JSONResponse(forums.get_forums())


@router.post("/api/forums")
def api_forums_create(payload: dict = Body(...)):
    require_role(Operation.CREATE_FORUM)
    return JSONResponse(forums.create_forum(payload), status_code=201)


@router.get("/api/forums/{forum_id}")
def api_forum(forum_id: int):
    return JSONResponse(forums.get_forum_by_id(forum_id))


@router.get("/api/messages")
def api_messages(
    conversation_with: Optional[int] = None,
    limit: int = DEFAULT_MESSAGE_LIMIT,
    offset: int = 0,
):
    uid = require_user()
    return JSONResponse(messages.get_messages(uid, conversation_with, limit, offset))


@router.post("/api/messages")
def api_messages_send(payload: dict = Body(...)):
    uid = require_user()
    return JSONResponse(messages.send_message(uid, payload), status_code=201)


@router.get("/api/messages/conversations")
def api_conversations():
    uid = require_user()
    return JSONResponse(messages.get_conversations(uid))


@router.put("/api/messages/conversations/{partner_id}/read")
def api_conversation_read(partner_id: int):
    uid = require_user()
    return JSONResponse({"count": messages.mark_conversation_as_read(uid, partner_id)})


@router.put("/api/messages/{message_id}/read")
def api_message_read(message_id: int):
    uid = require_user()
    return JSONResponse(messages.mark_message_as_read(message_id, uid))


@router.get("/api/notifications")
def api_notifications(read: Optional[bool] = None, type: str = ""):
    uid = require_user()
    return JSONResponse(notifications.get_user_notifications(uid, read, type or None))


@router.post("/api/notifications")
def api_notifications_create(payload: dict = Body(...)):
    # The recipient is user_id in the payload; any signed-in user may notify another.
    require_user()
    return JSONResponse(notifications.create_notification(payload), status_code=201)


@router.put("/api/notifications/read-all")
def api_notifications_read_all():
    uid = require_user()
    notifications.mark_all_notifications_as_read(uid)
    return Response(status_code=204)


@router.put("/api/notifications/{notification_id}/read")
def api_notification_read(notification_id: int):
    uid = require_user()
    return JSONResponse(notifications.mark_notification_as_read(notification_id, uid))


@router.delete("/api/notifications/{notification_id}")
def api_notification_delete(notification_id: int):
    uid = require_user()
    notifications.delete_notification(notification_id, uid)
    return Response(status_code=204)
