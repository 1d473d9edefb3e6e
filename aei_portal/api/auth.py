import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..services import access_requests as access_request_service
from ..services.accounts import authenticate
from ..utils.dependencies import Identity, get_optional_user
from ..utils.error_handlers import EXPECTED_ERRORS, redirect_with
from ..utils.security import create_session_token
from ..utils.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

DASHBOARDS = {"admin": "/admin", "student": "/student", "employer": "/employer"}


@router.get("/")
def home(user: Identity | None = Depends(get_optional_user)):
    if user is None:
        return RedirectResponse(url="/login", status_code=303)
    return RedirectResponse(url=DASHBOARDS[user.role], status_code=303)


@router.get("/login")
def login_page(request: Request, user: Identity | None = Depends(get_optional_user)):
    if user is not None:
        return RedirectResponse(url=DASHBOARDS[user.role], status_code=303)
    return render(request, "login.html")


@router.post("/login")
def login(
    email: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
):
    try:
        user = authenticate(db, email=email, password=password)
    except EXPECTED_ERRORS as e:
        return redirect_with("/login", error=e.message)

    token = create_session_token(user_id=user.id, role=user.role)
    response = RedirectResponse(url=DASHBOARDS[user.role], status_code=303)
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        max_age=config.SESSION_MAX_AGE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=config.SESSION_COOKIE_SECURE,
    )
    logger.info("User %s logged in as %s", user.id, user.role)
    return response


@router.post("/logout")
def logout():
    response = redirect_with("/login", message="You have been logged out.")
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return response


@router.get("/request-access")
def request_access_page(request: Request):
    return render(request, "request_access.html", {"request_type": "register"})


@router.post("/request-access")
def request_access(
    email: str = Form(""),
    requested_role: str = Form(""),
    note: str = Form(""),
    db: Session = Depends(get_db),
):
    try:
        access_request_service.submit_access_request(
            db, request_type="register", email=email, requested_role=requested_role, note=note
        )
    except EXPECTED_ERRORS as e:
        return redirect_with("/request-access", error=e.message)
    return redirect_with("/login", message="Thanks! An administrator will review your request.")


@router.get("/reset-password")
def reset_password_page(request: Request):
    return render(request, "request_access.html", {"request_type": "reset_password"})


@router.post("/reset-password")
def reset_password(
    email: str = Form(""),
    note: str = Form(""),
    db: Session = Depends(get_db),
):
    try:
        access_request_service.submit_access_request(
            db, request_type="reset_password", email=email, note=note
        )
    except EXPECTED_ERRORS as e:
        return redirect_with("/reset-password", error=e.message)
    # Same answer whether or not the account exists.
    return redirect_with("/login", message="If that account exists, an administrator will contact you.")
