from fastapi import APIRouter, Body, Response
from fastapi.responses import JSONResponse

from security import Operation, require_role, require_user
from services import conditions

router = APIRouter()


@router.get("/api/conditions")
def api_conditions(category: str = ""):
    if category:
        return JSONResponse(conditions.get_conditions_by_category(category))
    return JSONResponse(conditions.get_conditions())


@router.post("/api/conditions")
def api_conditions_create(payload: dict = Body(...)):
    require_role(Operation.CREATE_CONDITION)
    return JSONResponse(conditions.create_condition(payload), status_code=201)


@router.get("/api/conditions/categories")
def api_condition_categories():
    return JSONResponse(conditions.get_condition_categories())


@router.get("/api/conditions/stats")
def api_condition_stats():
    uid = require_user()
    return JSONResponse(conditions.get_condition_stats(uid))


@router.get("/api/conditions/user")
def api_user_conditions():
    uid = require_user()
    return JSONResponse(conditions.get_user_conditions(uid))


@router.post("/api/conditions/user")
def api_user_conditions_add(payload: dict = Body(...)):
    uid = require_user()
    return JSONResponse(conditions.add_user_condition(uid, payload), status_code=201)


@router.get("/api/conditions/user/{user_condition_id}")
def api_user_condition(user_condition_id: int):
    uid = require_user()
    return JSONResponse(conditions.get_user_condition(user_condition_id, uid))


@router.put("/api/conditions/user/{user_condition_id}")
def api_user_condition_update(user_condition_id: int, payload: dict = Body(...)):
    uid = require_user()
    return JSONResponse(conditions.update_user_condition(user_condition_id, uid, payload))


@router.delete("/api/conditions/user/{user_condition_id}")
def api_user_condition_delete(user_condition_id: int):
    uid = require_user()
    conditions.delete_user_condition(user_condition_id, uid)
    return Response(status_code=204)
