import io

from aei_portal.models.document import Document
from aei_portal.models.status_history import StatusHistory
from aei_portal.models.student import Student

PASSWORD = "Testpass123!"


def test_admin_enrolls_student_and_shares_document(client, db_session, admin, make_employer, login):
    make_employer(email="employer@x.com")

    # Admin creates the student.
    login("admin@example.com")
    r = client.post("/admin/students", data={"email": "a@x.com", "password": PASSWORD}, follow_redirects=False)
    assert r.status_code == 303
    student = db_session.query(Student).one()
    assert (student.status, student.level) == ("Pending Enrollment", 1)

    # Admin activates the student.
    client.post(f"/admin/students/{student.id}/status", data={"status": "Active"})
    rows = db_session.query(StatusHistory).filter(StatusHistory.student_id == student.id).all()
    assert [(h.old_status, h.new_status) for h in rows] == [("Pending Enrollment", "Active")]

    # Admin uploads the student's ID card.
    r = client.post(
        f"/documents/student/{student.id}/upload",
        data={"category": "ID"},
        files={"file": ("card.pdf", io.BytesIO(b"card-bytes"), "application/pdf")},
        follow_redirects=False,
    )
    assert "msg=" in r.headers["location"]
    doc = db_session.query(Document).one()

    # The student can download it.
    client.cookies.clear()
    login("a@x.com")
    r = client.get(f"/documents/{doc.id}/download")
    assert r.status_code == 200
    assert r.content == b"card-bytes"

    # A different account cannot.
    client.cookies.clear()
    login("employer@x.com")
    assert client.get(f"/documents/{doc.id}/download").status_code == 403
