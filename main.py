import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config import LOG_LEVEL, PUBLIC_PATHS, _current_role, _current_user_id
from db import init_db
from errors import AppError, ErrorKind
from routers import auth, community, conditions, dashboard, symptoms, treatments
from security import _get_authenticated_user
from services.users import ensure_default_admin

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

init_db()
ensure_default_admin()

app = FastAPI(title="Health Community Tracker")

_STATUS_BY_KIND = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STORAGE: 500,
}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    status = _STATUS_BY_KIND.get(exc.kind, 500)
    if status >= 500:
        # storage details stay in the log
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
        return JSONResponse({"error": exc.message}, status_code=status)
    return JSONResponse(exc.to_dict(), status_code=status)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return JSONResponse({"error": "Invalid request", "details": details}, status_code=400)


@app.middleware("http")
async def session_middleware(request: Request, call_next):
    user = None
    if request.url.path not in PUBLIC_PATHS:
        user = _get_authenticated_user(request)
    _current_user_id.set(user["id"] if user else None)
    _current_role.set(user["role"] if user else None)
    return await call_next(request)


@app.get("/")
def root():
    return JSONResponse({"status": "ok"})


app.include_router(auth.router)
app.include_router(conditions.router)
app.include_router(symptoms.router)
app.include_router(treatments.router)
app.include_router(community.router)
app.include_router(dashboard.router)
