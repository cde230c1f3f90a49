import logging

from fastapi import APIRouter, Form, Request
from fastapi.responses import JSONResponse

from config import SESSION_COOKIE_NAME
from security import _is_login_allowed, _is_signup_allowed, _set_session_cookie, require_user
from services import users

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup")
def signup_post(
    request: Request,
    username: str = Form(""),
    email: str = Form(""),
    full_name: str = Form(""),
    new_password: str = Form(""),
    confirm_password: str = Form(""),
):
    ip = request.client.host if request.client else "unknown"
    if not _is_signup_allowed(ip):
        logger.warning("Signup rate limit hit for %s", ip)
        return JSONResponse({"error": "Too many sign-up attempts, try again later"}, status_code=429)
    if new_password != confirm_password:
        return JSONResponse({"error": "Passwords do not match"}, status_code=400)
    row = users.create_user(username, new_password, email=email, full_name=full_name)
    resp = JSONResponse({"ok": True, "user": users.public_user(row)}, status_code=201)
    _set_session_cookie(resp, request, row["id"], row["password_hash"])
    return resp


@router.post("/login")
def login_post(request: Request, username: str = Form(""), password: str = Form("")):
    ip = request.client.host if request.client else "unknown"
    if not _is_login_allowed(ip):
        logger.warning("Login rate limit hit for %s", ip)
        return JSONResponse({"error": "Too many login attempts, try again later"}, status_code=429)
    row = users.authenticate(username, password)
    if row is None:
        return JSONResponse({"error": "Invalid username or password"}, status_code=401)
    resp = JSONResponse({"ok": True, "user": users.public_user(row)})
    _set_session_cookie(resp, request, row["id"], row["password_hash"])
    return resp


@router.post("/logout")
def logout():
    resp = JSONResponse({"ok": True})
    resp.delete_cookie(SESSION_COOKIE_NAME)
    return resp


@router.get("/api/me")
def api_me():
    uid = require_user()
    return JSONResponse(users.get_user(uid))
