import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from . import config
from .api import admin as admin_api
from .api import auth as auth_api
from .api import documents as documents_api
from .api import employer as employer_api
from .api import student as student_api
from . import database
from .services.accounts import bootstrap_admin
from .utils.error_handlers import AppError, UnauthorizedError, get_error_message, redirect_with
from .utils.templating import render

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="AEI Apprenticeship Portal")

app.include_router(auth_api.router)
app.include_router(admin_api.router)
app.include_router(student_api.router)
app.include_router(employer_api.router)
app.include_router(documents_api.router)

logger = logging.getLogger(__name__)


def _error_page(request: Request, status_code: int, message: str):
    return render(
        request,
        "error.html",
        {"status_code": status_code, "message": message},
        status_code=status_code,
    )


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(request: Request, exc: UnauthorizedError):
    """No valid session: back to the login page, dropping any stale cookie."""
    response = redirect_with("/login", error=exc.message)
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Forbidden / not found / validation errors that a route did not turn into a redirect."""
    if exc.status_code >= 500:
        logger.error("AppError %s on %s: %s", exc.status_code, request.url.path, exc.message)
    else:
        logger.info("AppError %s on %s: %s", exc.status_code, request.url.path, exc.message)
    return _error_page(request, exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("Request validation failed on %s: %s", request.url.path, exc.errors())
    return _error_page(request, 400, get_error_message("validation_error"))


@app.exception_handler(OperationalError)
async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
    """Handle database operational errors."""
    logger.exception("Database OperationalError: %s", exc)
    return _error_page(request, 503, get_error_message("database_error"))


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    """Handle general database errors."""
    logger.exception("Database SQLAlchemyError: %s", exc)
    return _error_page(request, 500, get_error_message("database_error"))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors globally."""
    logger.exception("Unhandled exception: %s", exc)
    return _error_page(request, 500, get_error_message("server_error"))


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "AEI Apprenticeship Portal"}


@app.on_event("startup")
def on_startup() -> None:
    database.init_db()
    logger.info("Database initialized (%s)", config.ENVIRONMENT)

    if config.ADMIN_EMAIL and config.ADMIN_PASSWORD:
        db = database.SessionLocal()
        try:
            bootstrap_admin(db, email=config.ADMIN_EMAIL, password=config.ADMIN_PASSWORD)
        except AppError as e:
            logger.error(f"Admin bootstrap failed: {e.message}")
        finally:
            db.close()
    else:
        logger.info("ADMIN_EMAIL / ADMIN_PASSWORD not set; skipping admin bootstrap")
