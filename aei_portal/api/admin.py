import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.student import STUDENT_STATUSES
from ..repositories import employers as employer_repo
from ..repositories import students as student_repo
from ..schemas.profiles import EmployerProfileIn, StudentProfileIn
from ..services import access_requests as access_request_service
from ..services import accounts as account_service
from ..services import compliance_export
from ..services import document_vault
from ..services import status_lifecycle
from ..utils.dependencies import Identity
from ..utils.error_handlers import EXPECTED_ERRORS, redirect_with
from ..utils.roles import admin_only
from ..utils.templating import render
from ..utils.validation import parse_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("")
def dashboard(
    request: Request,
    status: str = "",
    q: str = "",
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    status_filter = status if status in STUDENT_STATUSES else None
    students = student_repo.list_students(db, status=status_filter, search=q.strip() or None)
    open_requests = access_request_service.list_access_requests(db, user, status="open")
    return render(
        request,
        "admin_dashboard.html",
        {
            "students": students,
            "employers": employer_repo.list_employers(db),
            "statuses": STUDENT_STATUSES,
            "status_filter": status_filter,
            "search": q,
            "open_requests": len(open_requests),
        },
        user=user,
    )


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------

@router.post("/students")
async def create_student(request: Request, user: Identity = Depends(admin_only), db: Session = Depends(get_db)):
    form = await request.form()
    try:
        profile = parse_form(StudentProfileIn, form)
        student = account_service.create_student_account(
            db, user, email=form.get("email", ""), password=form.get("password", ""), profile=profile
        )
    except EXPECTED_ERRORS as e:
        return redirect_with("/admin", error=e.message)
    return redirect_with(f"/admin/students/{student.id}", message="Student created.")


@router.get("/students/{student_id}")
def student_detail(
    request: Request,
    student_id: int,
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    student = account_service.get_student_for(db, user, student_id)
    return render(
        request,
        "admin_student.html",
        {
            "student": student,
            "history": status_lifecycle.status_history(db, student.id),
            "statuses": status_lifecycle.allowed_statuses(),
            "documents": document_vault.list_documents(db, user, "student", student.id),
            "categories": document_vault.DOCUMENT_CATEGORIES["student"],
        },
        user=user,
    )


@router.post("/students/{student_id}")
async def update_student(
    request: Request,
    student_id: int,
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    form = await request.form()
    try:
        account_service.update_student_profile(db, user, student_id, parse_form(StudentProfileIn, form))
    except EXPECTED_ERRORS as e:
        return redirect_with(f"/admin/students/{student_id}", error=e.message)
    return redirect_with(f"/admin/students/{student_id}", message="Profile saved.")


@router.post("/students/{student_id}/status")
def change_status(
    student_id: int,
    status: str = Form(""),
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        row = status_lifecycle.transition_status(db, student_id=student_id, new_status=status, actor=user)
    except EXPECTED_ERRORS as e:
        return redirect_with(f"/admin/students/{student_id}", error=e.message)

    if row is None:
        return redirect_with(f"/admin/students/{student_id}", message="Status unchanged.")
    return redirect_with(f"/admin/students/{student_id}", message=f"Status changed to {row.new_status}.")


# ---------------------------------------------------------------------------
# Employers
# ---------------------------------------------------------------------------

@router.post("/employers")
async def create_employer(request: Request, user: Identity = Depends(admin_only), db: Session = Depends(get_db)):
    form = await request.form()
    try:
        profile = parse_form(EmployerProfileIn, form)
        employer = account_service.create_employer_account(
            db, user, email=form.get("email", ""), password=form.get("password", ""), profile=profile
        )
    except EXPECTED_ERRORS as e:
        return redirect_with("/admin", error=e.message)
    return redirect_with(f"/admin/employers/{employer.id}", message="Employer created.")


@router.get("/employers/{employer_id}")
def employer_detail(
    request: Request,
    employer_id: int,
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    employer = account_service.get_employer_for(db, user, employer_id)
    return render(
        request,
        "admin_employer.html",
        {
            "employer": employer,
            "documents": document_vault.list_documents(db, user, "employer", employer.id),
            "categories": document_vault.DOCUMENT_CATEGORIES["employer"],
        },
        user=user,
    )


@router.post("/employers/{employer_id}")
async def update_employer(
    request: Request,
    employer_id: int,
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    form = await request.form()
    try:
        account_service.update_employer_profile(db, user, employer_id, parse_form(EmployerProfileIn, form))
    except EXPECTED_ERRORS as e:
        return redirect_with(f"/admin/employers/{employer_id}", error=e.message)
    return redirect_with(f"/admin/employers/{employer_id}", message="Profile saved.")


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

@router.post("/admins")
def create_admin(
    email: str = Form(""),
    password: str = Form(""),
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        account_service.create_admin_account(db, user, email=email, password=password)
    except EXPECTED_ERRORS as e:
        return redirect_with("/admin", error=e.message)
    return redirect_with("/admin", message="Admin created.")


@router.post("/users/{user_id}/password")
def set_password(
    user_id: int,
    password: str = Form(""),
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        account_service.set_password(db, user, user_id, password)
    except EXPECTED_ERRORS as e:
        return redirect_with("/admin", error=e.message)
    return redirect_with("/admin", message="Password updated.")


@router.post("/users/{user_id}/delete")
def delete_user(
    user_id: int,
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        account_service.delete_user(db, user, user_id)
    except EXPECTED_ERRORS as e:
        return redirect_with("/admin", error=e.message)
    return redirect_with("/admin", message="Account deleted.")


# ---------------------------------------------------------------------------
# Access requests
# ---------------------------------------------------------------------------

@router.get("/access-requests")
def access_requests(
    request: Request,
    status: str = "open",
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        requests = access_request_service.list_access_requests(db, user, status=status or None)
    except EXPECTED_ERRORS as e:
        return redirect_with("/admin/access-requests", error=e.message)
    return render(request, "admin_access_requests.html", {"requests": requests}, user=user)


@router.post("/access-requests/{request_id}/close")
def close_access_request(
    request_id: int,
    user: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        access_request_service.close_access_request(db, user, request_id)
    except EXPECTED_ERRORS as e:
        return redirect_with("/admin/access-requests", error=e.message)
    return redirect_with("/admin/access-requests", message="Request closed.")


# ---------------------------------------------------------------------------
# RAPIDS exports
# ---------------------------------------------------------------------------

def _csv_response(content: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/exports/enrollees.csv")
def export_enrollees(user: Identity = Depends(admin_only), db: Session = Depends(get_db)):
    return _csv_response(compliance_export.export_enrollees_csv(db, user), "rapids-enrollees.csv")


@router.get("/exports/exiters.csv")
def export_exiters(user: Identity = Depends(admin_only), db: Session = Depends(get_db)):
    return _csv_response(compliance_export.export_exiters_csv(db, user), "rapids-exiters.csv")
