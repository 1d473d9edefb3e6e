from aei_portal import config


def test_login_success_sets_session_cookie_and_redirects_to_dashboard(client, admin, login):
    r = login("admin@example.com")
    assert r.headers["location"] == "/admin"
    assert config.SESSION_COOKIE_NAME in r.cookies

    r = client.get("/admin")
    assert r.status_code == 200, r.text
    assert "Admin dashboard" in r.text


def test_login_is_case_insensitive_on_email(client, admin, login):
    r = login("  ADMIN@Example.com ")
    assert r.headers["location"] == "/admin"


def test_login_failure_does_not_reveal_whether_account_exists(client, admin):
    wrong_pw = client.post(
        "/login", data={"email": "admin@example.com", "password": "nope-nope"}, follow_redirects=False
    )
    unknown = client.post(
        "/login", data={"email": "ghost@example.com", "password": "nope-nope"}, follow_redirects=False
    )
    assert wrong_pw.status_code == unknown.status_code == 303
    assert wrong_pw.headers["location"] == unknown.headers["location"]
    assert wrong_pw.headers["location"].startswith("/login?error=")
    assert config.SESSION_COOKIE_NAME not in wrong_pw.cookies


def test_student_login_lands_on_student_dashboard(client, make_student, login):
    make_student(email="stu@example.com", first_name="Ada")
    r = login("stu@example.com")
    assert r.headers["location"] == "/student"

    r = client.get("/student")
    assert r.status_code == 200, r.text
    assert "Ada" in r.text
    assert "Pending Enrollment" in r.text


def test_pages_without_session_redirect_to_login(client, app):
    for path in ("/admin", "/student", "/employer", "/admin/exports/enrollees.csv"):
        r = client.get(path, follow_redirects=False)
        assert r.status_code == 303, path
        assert r.headers["location"].startswith("/login")


def test_tampered_cookie_is_rejected(client, admin):
    client.cookies.set(config.SESSION_COOKIE_NAME, "not-a-real-token")
    r = client.get("/admin", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith("/login")


def test_student_cannot_reach_admin_pages(client, make_student, login):
    make_student(email="stu2@example.com")
    login("stu2@example.com")

    assert client.get("/admin").status_code == 403
    assert client.get("/admin/exports/exiters.csv").status_code == 403
    assert client.get("/employer").status_code == 403
    r = client.post("/admin/students", data={"email": "x@example.com", "password": "Testpass123!"})
    assert r.status_code == 403


def test_employer_cannot_reach_student_dashboard(client, make_employer, login):
    make_employer(email="boss@example.com", company_name="Acme")
    login("boss@example.com")

    assert client.get("/student").status_code == 403
    r = client.get("/employer")
    assert r.status_code == 200
    assert "Acme" in r.text


def test_logout_clears_session(client, admin, login):
    login("admin@example.com")
    r = client.post("/logout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith("/login")

    client.cookies.clear()
    r = client.get("/admin", follow_redirects=False)
    assert r.headers["location"].startswith("/login")


def test_deleted_account_session_stops_working(client, db_session, admin, make_student, login):
    from aei_portal.services.accounts import delete_user

    student = make_student(email="gone@example.com")
    login("gone@example.com")
    assert client.get("/student").status_code == 200

    delete_user(db_session, admin, student.user_id)

    r = client.get("/student", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith("/login")


def test_root_redirects_by_role(client, make_employer, login):
    r = client.get("/", follow_redirects=False)
    assert r.headers["location"] == "/login"

    make_employer(email="emp@example.com")
    login("emp@example.com")
    r = client.get("/", follow_redirects=False)
    assert r.headers["location"] == "/employer"


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
