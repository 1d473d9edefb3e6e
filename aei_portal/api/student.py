from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..repositories import students as student_repo
from ..schemas.profiles import StudentProfileIn
from ..services import accounts as account_service
from ..services import document_vault
from ..utils.dependencies import Identity
from ..utils.error_handlers import EXPECTED_ERRORS, NotFoundError, get_error_message, redirect_with
from ..utils.roles import student_only
from ..utils.templating import render
from ..utils.validation import parse_form

router = APIRouter(prefix="/student", tags=["Student"])


def _own_student(db: Session, user: Identity):
    student = student_repo.get_student_by_user(db, user.user_id)
    if student is None:
        raise NotFoundError(get_error_message("student_not_found"))
    return student


@router.get("")
def dashboard(request: Request, user: Identity = Depends(student_only), db: Session = Depends(get_db)):
    student = _own_student(db, user)
    return render(
        request,
        "student_dashboard.html",
        {
            "student": student,
            "documents": document_vault.list_documents(db, user, "student", student.id),
            "categories": document_vault.DOCUMENT_CATEGORIES["student"],
        },
        user=user,
    )


@router.post("/profile")
async def update_profile(request: Request, user: Identity = Depends(student_only), db: Session = Depends(get_db)):
    student = _own_student(db, user)
    form = await request.form()
    try:
        account_service.update_student_profile(db, user, student.id, parse_form(StudentProfileIn, form))
    except EXPECTED_ERRORS as e:
        return redirect_with("/student", error=e.message)
    return redirect_with("/student", message="Profile saved.")
