from fastapi import APIRouter, Body, Response
from fastapi.responses import JSONResponse

from config import DEFAULT_LOG_LIMIT, DEFAULT_STATS_DAYS
from security import Operation, require_role, require_user
from services import symptoms

router = APIRouter()


@router.get("/api/symptoms")
def api_symptoms():
    return JSONResponse(symptoms.get_symptoms())


@router.post("/api/symptoms")
def api_symptoms_create(payload: dict = Body(...)):
    require_role(Operation.CREATE_SYMPTOM)
    return JSONResponse(symptoms.create_symptom(payload), status_code=201)


@router.post("/api/symptoms/log")
def api_symptoms_log(payload: dict = Body(...)):
    # Owner always comes from the session; a user_id in the payload is ignored.
    uid = require_user()
    return JSONResponse(symptoms.log_symptom(uid, payload), status_code=201)


@router.get("/api/symptoms/logs")
def api_symptom_logs(limit: int = DEFAULT_LOG_LIMIT):
    uid = require_user()
    return JSONResponse(symptoms.get_user_symptom_logs(uid, limit))


@router.put("/api/symptoms/logs/{log_id}")
def api_symptom_log_update(log_id: int, payload: dict = Body(...)):
    uid = require_user()
    return JSONResponse(symptoms.update_symptom_log(log_id, uid, payload))


@router.delete("/api/symptoms/logs/{log_id}")
def api_symptom_log_delete(log_id: int):
    uid = require_user()
    symptoms.delete_symptom_log(log_id, uid)
    return Response(status_code=204)


@router.get("/api/symptoms/stats")
def api_symptom_stats(days: int = DEFAULT_STATS_DAYS):
    uid = require_user()
    return JSONResponse(symptoms.get_symptom_stats(uid, days))


@router.get("/api/symptoms/correlations")
def api_symptom_correlations(days: int = DEFAULT_STATS_DAYS):
    uid = require_user()
    return JSONResponse(symptoms.get_symptom_correlations(uid, days))
