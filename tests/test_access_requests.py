import pytest

from aei_portal import config
from aei_portal.models.access_request import AccessRequest
from aei_portal.services import access_requests as access_request_service
from aei_portal.services import emailer
from aei_portal.utils.error_handlers import ForbiddenError, NotFoundError, ValidationError


def test_register_request_is_stored_open(client, db_session):
    r = client.post(
        "/request-access",
        data={"email": "Newbie@Example.com", "requested_role": "student", "note": "Cohort 5"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"].startswith("/login?msg=")

    req = db_session.query(AccessRequest).one()
    assert req.request_type == "register"
    assert req.email == "newbie@example.com"
    assert req.requested_role == "student"
    assert req.note == "Cohort 5"
    assert req.status == "open"


def test_admin_role_cannot_be_requested(client, db_session):
    r = client.post(
        "/request-access",
        data={"email": "sneaky@example.com", "requested_role": "admin"},
        follow_redirects=False,
    )
    assert r.headers["location"].startswith("/request-access?error=")
    assert db_session.query(AccessRequest).count() == 0


def test_reset_request_answer_does_not_depend_on_account(client, db_session, make_student):
    make_student(email="real@example.com")

    known = client.post("/reset-password", data={"email": "real@example.com"}, follow_redirects=False)
    unknown = client.post("/reset-password", data={"email": "ghost@example.com"}, follow_redirects=False)

    assert known.status_code == unknown.status_code == 303
    assert known.headers["location"] == unknown.headers["location"]
    assert db_session.query(AccessRequest).filter(AccessRequest.request_type == "reset_password").count() == 2


def test_invalid_email_is_rejected(db_session):
    with pytest.raises(ValidationError):
        access_request_service.submit_access_request(db_session, request_type="register", email="nope")
    with pytest.raises(ValidationError):
        access_request_service.submit_access_request(db_session, request_type="unlock", email="a@example.com")


def test_public_forms_render(client):
    assert "Request an account" in client.get("/request-access").text
    assert "Reset password" in client.get("/reset-password").text
    assert client.get("/login").status_code == 200


def test_admin_lists_and_closes_requests(client, db_session, admin, login):
    req = access_request_service.submit_access_request(
        db_session, request_type="register", email="emp@example.com", requested_role="employer"
    )
    login("admin@example.com")

    page = client.get("/admin/access-requests")
    assert page.status_code == 200
    assert "emp@example.com" in page.text

    r = client.post(f"/admin/access-requests/{req.id}/close", follow_redirects=False)
    assert r.headers["location"].startswith("/admin/access-requests?msg=")

    assert access_request_service.list_access_requests(db_session, admin) == []
    closed = access_request_service.list_access_requests(db_session, admin, status="closed")
    assert [c.id for c in closed] == [req.id]
    assert len(access_request_service.list_access_requests(db_session, admin, status=None)) == 1


def test_close_unknown_request(db_session, admin):
    with pytest.raises(NotFoundError):
        access_request_service.close_access_request(db_session, admin, 404)


def test_only_admins_see_requests(db_session, make_student, identity_of):
    student = make_student()
    with pytest.raises(ForbiddenError):
        access_request_service.list_access_requests(db_session, identity_of(student))


def test_admin_is_notified_when_mail_is_configured(db_session, monkeypatch):
    sent = []
    monkeypatch.setattr(config, "ADMIN_NOTIFY_EMAIL", "office@example.com")
    monkeypatch.setattr(access_request_service, "smtp_configured", lambda: True)
    monkeypatch.setattr(access_request_service, "send_access_request_notice", lambda **kw: sent.append(kw))

    access_request_service.submit_access_request(
        db_session, request_type="register", email="a@example.com", requested_role="student", note="hi"
    )

    assert len(sent) == 1
    assert sent[0]["to_email"] == "office@example.com"
    assert sent[0]["requester_email"] == "a@example.com"


def test_mail_failure_does_not_lose_the_request(db_session, monkeypatch):
    def _boom(**kwargs):
        raise OSError("smtp down")

    monkeypatch.setattr(config, "ADMIN_NOTIFY_EMAIL", "office@example.com")
    monkeypatch.setattr(access_request_service, "smtp_configured", lambda: True)
    monkeypatch.setattr(access_request_service, "send_access_request_notice", _boom)

    req = access_request_service.submit_access_request(db_session, request_type="reset_password", email="a@example.com")
    assert req.id is not None
    assert db_session.query(AccessRequest).count() == 1


def test_send_email_requires_smtp_settings(monkeypatch):
    monkeypatch.setattr(config, "SMTP_HOST", "")
    assert emailer.smtp_configured() is False
    with pytest.raises(RuntimeError):
        emailer.send_email(to_email="a@example.com", subject="s", body="b")
