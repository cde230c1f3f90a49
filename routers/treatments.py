from fastapi import APIRouter, Body, Response
from fastapi.responses import JSONResponse

from security import Operation, require_role, require_user
from services import reminders, treatments

router = APIRouter()


@router.get("/api/treatments")
def api_treatments():
    return JSONResponse(treatments.get_treatments())


@router.post("/api/treatments")
def api_treatments_create(payload: dict = Body(...)):
    require_role(Operation.CREATE_TREATMENT)
    return JSONResponse(treatments.create_treatment(payload), status_code=201)


@router.get("/api/treatments/stats")
def api_treatment_stats():
    uid = require_user()
    return JSONResponse(treatments.get_treatment_stats(uid))


@router.get("/api/treatments/user")
def api_user_treatments():
    uid = require_user()
    return JSONResponse(treatments.get_user_treatments(uid))


@router.post("/api/treatments/user")
def api_user_treatments_add(payload: dict = Body(...)):
    uid = require_user()
    return JSONResponse(treatments.add_user_treatment(uid, payload), status_code=201)


@router.put("/api/treatments/user/{user_treatment_id}")
def api_user_treatment_update(user_treatment_id: int, payload: dict = Body(...)):
    uid = require_user()
    return JSONResponse(treatments.update_user_treatment(user_treatment_id, uid, payload))


@router.delete("/api/treatments/user/{user_treatment_id}")
def api_user_treatment_delete(user_treatment_id: int):
    uid = require_user()
    treatments.delete_user_treatment(user_treatment_id, uid)
    return Response(status_code=204)


@router.get("/api/reminders")
def api_reminders():
    uid = require_user()
    return JSONResponse(reminders.get_user_reminders(uid))


@router.post("/api/reminders")
def api_reminders_create(payload: dict = Body(...)):
    uid = require_user()
    return JSONResponse(reminders.create_reminder(uid, payload), status_code=201)


@router.put("/api/reminders/{reminder_id}")
def api_reminder_update(reminder_id: int, payload: dict = Body(...)):
    uid = require_user()
    return JSONResponse(reminders.update_reminder(reminder_id, uid, payload))


@router.delete("/api/reminders/{reminder_id}")
def api_reminder_delete(reminder_id: int):
    uid = require_user()
    reminders.delete_reminder(reminder_id, uid)
    return Response(status_code=204)
