from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..repositories import employers as employer_repo
from ..schemas.profiles import EmployerProfileIn
from ..services import accounts as account_service
from ..services import document_vault
from ..utils.dependencies import Identity
from ..utils.error_handlers import EXPECTED_ERRORS, NotFoundError, get_error_message, redirect_with
from ..utils.roles import employer_only
from ..utils.templating import render
from ..utils.validation import parse_form

router = APIRouter(prefix="/employer", tags=["Employer"])


def _own_employer(db: Session, user: Identity):
    employer = employer_repo.get_employer_by_user(db, user.user_id)
    if employer is None:
        raise NotFoundError(get_error_message("employer_not_found"))
    return employer


@router.get("")
def dashboard(request: Request, user: Identity = Depends(employer_only), db: Session = Depends(get_db)):
    employer = _own_employer(db, user)
    return render(
        request,
        "employer_dashboard.html",
        {
            "employer": employer,
            "documents": document_vault.list_documents(db, user, "employer", employer.id),
            "categories": document_vault.DOCUMENT_CATEGORIES["employer"],
        },
        user=user,
    )


@router.post("/profile")
async def update_profile(request: Request, user: Identity = Depends(employer_only), db: Session = Depends(get_db)):
    employer = _own_employer(db, user)
    form = await request.form()
    try:
        account_service.update_employer_profile(db, user, employer.id, parse_form(EmployerProfileIn, form))
    except EXPECTED_ERRORS as e:
        return redirect_with("/employer", error=e.message)
    return redirect_with("/employer", message="Profile saved.")
