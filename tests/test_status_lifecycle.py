import pytest

from aei_portal import config
from aei_portal.models.status_history import StatusHistory
from aei_portal.models.student import Student
from aei_portal.repositories.students import count_history
from aei_portal.services.status_lifecycle import (
    COMPLETED_LEVEL,
    allowed_statuses,
    status_history,
    transition_status,
)
from aei_portal.utils.error_handlers import ForbiddenError, NotFoundError, ValidationError


def test_new_student_starts_pending_enrollment_at_level_one(make_student, db_session):
    student = make_student()
    assert student.status == "Pending Enrollment"
    assert student.level == 1
    assert count_history(db_session, student.id) == 0


def test_transition_updates_status_and_appends_history(db_session, admin, make_student):
    student = make_student()

    row = transition_status(db_session, student_id=student.id, new_status="Active", actor=admin)

    assert row is not None
    assert row.old_status == "Pending Enrollment"
    assert row.new_status == "Active"
    assert row.changed_by_user_id == admin.user_id
    assert row.changed_at is not None

    db_session.expire_all()
    assert db_session.get(Student, student.id).status == "Active"
    assert count_history(db_session, student.id) == 1


def test_same_status_is_a_no_op(db_session, admin, make_student):
    student = make_student()
    transition_status(db_session, student_id=student.id, new_status="Active", actor=admin)

    assert transition_status(db_session, student_id=student.id, new_status="Active", actor=admin) is None
    assert count_history(db_session, student.id) == 1


def test_invalid_status_is_rejected_without_side_effects(db_session, admin, make_student):
    student = make_student()

    for bad in ("Graduated", "", "active", "Pending Re-Enrollment"):
        with pytest.raises(ValidationError):
            transition_status(db_session, student_id=student.id, new_status=bad, actor=admin)

    db_session.expire_all()
    assert db_session.get(Student, student.id).status == "Pending Enrollment"
    assert count_history(db_session, student.id) == 0


def test_unknown_student_is_not_found(db_session, admin):
    with pytest.raises(NotFoundError):
        transition_status(db_session, student_id=9999, new_status="Active", actor=admin)


def test_only_admins_can_change_status(db_session, make_student, identity_of):
    student = make_student()
    with pytest.raises(ForbiddenError):
        transition_status(db_session, student_id=student.id, new_status="Active", actor=identity_of(student))
    assert count_history(db_session, student.id) == 0


def test_history_chain_is_coherent(db_session, admin, make_student):
    student = make_student()
    for target in ("Active", "On Hold", "Active", "Completed"):
        transition_status(db_session, student_id=student.id, new_status=target, actor=admin)

    rows = status_history(db_session, student.id)
    assert [(r.old_status, r.new_status) for r in rows] == [
        ("Pending Enrollment", "Active"),
        ("Active", "On Hold"),
        ("On Hold", "Active"),
        ("Active", "Completed"),
    ]
    # Each row starts where the previous one ended; the last one matches the record.
    for prev, nxt in zip(rows, rows[1:]):
        assert prev.new_status == nxt.old_status
    db_session.expire_all()
    assert db_session.get(Student, student.id).status == rows[-1].new_status


def test_any_listed_status_is_reachable_directly(db_session, admin, make_student):
    student = make_student()
    row = transition_status(db_session, student_id=student.id, new_status="Withdrawn", actor=admin)
    assert (row.old_status, row.new_status) == ("Pending Enrollment", "Withdrawn")


def test_completed_level_requires_auto_advance(db_session, admin, make_student, monkeypatch):
    student = make_student()
    assert COMPLETED_LEVEL not in allowed_statuses()
    with pytest.raises(ValidationError):
        transition_status(db_session, student_id=student.id, new_status=COMPLETED_LEVEL, actor=admin)

    monkeypatch.setattr(config, "LEVEL_AUTO_ADVANCE", True)
    assert COMPLETED_LEVEL in allowed_statuses()


def test_completed_level_bumps_level_and_parks_student(db_session, admin, make_student, monkeypatch):
    monkeypatch.setattr(config, "LEVEL_AUTO_ADVANCE", True)
    student = make_student(level=2)
    transition_status(db_session, student_id=student.id, new_status="Active", actor=admin)

    row = transition_status(db_session, student_id=student.id, new_status=COMPLETED_LEVEL, actor=admin)

    assert (row.old_status, row.new_status) == ("Active", "Pending Re-Enrollment")
    db_session.expire_all()
    refreshed = db_session.get(Student, student.id)
    assert refreshed.level == 3
    assert refreshed.status == "Pending Re-Enrollment"


def test_completed_level_caps_at_level_four(db_session, admin, make_student, monkeypatch):
    monkeypatch.setattr(config, "LEVEL_AUTO_ADVANCE", True)
    student = make_student(level=4)
    transition_status(db_session, student_id=student.id, new_status=COMPLETED_LEVEL, actor=admin)

    db_session.expire_all()
    assert db_session.get(Student, student.id).level == 4


def test_history_survives_actor_deletion(db_session, admin, make_student):
    from aei_portal.services.accounts import create_admin_account, delete_user
    from aei_portal.utils.dependencies import Identity

    other = create_admin_account(db_session, admin, email="other-admin@example.com", password="Testpass123!")
    other_id = Identity(user_id=other.id, role="admin", email=other.email)
    student = make_student()
    transition_status(db_session, student_id=student.id, new_status="Active", actor=other_id)

    delete_user(db_session, admin, other.id)

    db_session.expire_all()
    rows = db_session.query(StatusHistory).filter(StatusHistory.student_id == student.id).all()
    assert len(rows) == 1
    assert rows[0].changed_by_user_id is None


def test_status_change_over_http(client, admin, make_student, login):
    student = make_student()
    login("admin@example.com")

    r = client.post(f"/admin/students/{student.id}/status", data={"status": "Active"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith(f"/admin/students/{student.id}?msg=")

    r = client.post(f"/admin/students/{student.id}/status", data={"status": "Bogus"}, follow_redirects=False)
    assert r.status_code == 303
    assert "error=" in r.headers["location"]

    page = client.get(f"/admin/students/{student.id}")
    assert page.status_code == 200
    assert "Pending Enrollment" in page.text
    assert "admin@example.com" in page.text


def test_unknown_student_page_is_404(client, admin, login):
    login("admin@example.com")
    assert client.get("/admin/students/4242").status_code == 404
