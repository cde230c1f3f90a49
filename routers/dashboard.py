from fastapi import APIRouter
from fastapi.responses import JSONResponse

from security import require_user
from services import dashboard

router = APIRouter()


@router.get("/api/dashboard/stats")
def api_dashboard_stats():
    uid = require_user()
    return JSONResponse(dashboard.get_dashboard_stats(uid))
