import inspect

import pytest
from fastapi.testclient import TestClient

from conftest import PDF_BYTES, png_bytes
from settings import settings


@pytest.fixture
def app(database, media):
    from api.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_client(app, admin):
    c = TestClient(app)
    resp = c.post("/login", data={"username": "curator", "password": "adminpw1"}, follow_redirects=False)
    assert resp.status_code == 303
    return c


def _login(c, username, password):
    return c.post("/login", data={"username": username, "password": password}, follow_redirects=False)


def _register(c, username="alice", password="pw12345", email="a@x.com"):
    return c.post("/register", data={"username": username, "password": password, "email": email})


def _files(pdf=True, image=True):
    files = {}
    if pdf:
        files["pdf"] = ("dune.pdf", PDF_BYTES, "application/pdf")
    if image:
        files["image"] = ("dune.png", png_bytes(), "image/png")
    return files


def _add_book(c, isbn="1234", title="Dune", **fields):
    return c.post("/addbook", data={"isbn": isbn, "title": title, **fields}, files=_files())


def test_register_and_login_scenario(client):
    resp = _register(client)
    assert resp.status_code == 201
    assert resp.json()["username"] == "alice"

    resp = _register(client, email="other@x.com")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User already exists"

    resp = _login(client, "alice", "wrongpw")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Password does not match"

    resp = _login(client, "nobody", "pw12345")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User does not exist"

    resp = _login(client, "alice", "pw12345")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert settings.SESSION_COOKIE_NAME in resp.cookies

    # Logged in: the saved list is now reachable
    assert client.get("/saved").json() == {"books": []}


def test_register_validation_is_a_client_error(client):
    resp = _register(client, username="a", password="x", email="nope")
    assert resp.status_code == 400


def test_password_hashing_handlers_run_in_threadpool():
    # Sync handlers are run off the event loop by FastAPI
    from api.routes import auth as auth_routes

    assert not inspect.iscoroutinefunction(auth_routes.register)
    assert not inspect.iscoroutinefunction(auth_routes.login)


def test_advanced_search_route_rejects_separator_only_isbn(client):
    resp = client.get("/advancedsearch", params={"isbn": "-"})
    assert resp.status_code == 400


def test_logout_destroys_session(client):
    _register(client)
    _login(client, "alice", "pw12345")
    assert client.get("/saved").status_code == 200
    resp = client.get("/logout", follow_redirects=False)
    assert resp.status_code == 303
    assert client.get("/saved").status_code == 401


def test_anonymous_saved_is_unauthenticated(client):
    resp = client.get("/saved")
    assert resp.status_code == 401
    assert resp.json()["reason"] == "unauthenticated"


def test_admin_saved_is_forbidden(admin_client):
    resp = admin_client.get("/saved")
    assert resp.status_code == 403
    assert resp.json()["reason"] == "not_user"


def test_missing_book_is_404(client):
    assert client.get("/book/999").status_code == 404
    assert client.get("/book/999/reviews").status_code == 404


def test_admin_adds_and_updates_book(admin_client, client):
    resp = _add_book(admin_client, author="Frank Herbert")
    assert resp.status_code == 201
    body = resp.json()
    assert body["pdf"] == "/pdf/1234.pdf"
    assert body["image"] == "/image/1234.png"

    assert client.get("/book/1234").json()["author"] == "Frank Herbert"
    assert client.get("/").json()["books"][0]["isbn"] == "1234"

    resp = admin_client.put("/updatebook/1234", data={"title": "Dune II"}, files=_files())
    assert resp.status_code == 200
    assert client.get("/book/1234").json()["title"] == "Dune II"

    resp = client.get("/book/1234/reading", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/pdf/1234.pdf"


def test_update_with_only_pdf_is_rejected_and_book_kept(admin_client, client):
    _add_book(admin_client)
    resp = admin_client.put("/updatebook/1234", data={"title": "Changed"}, files=_files(image=False))
    assert resp.status_code == 400
    assert client.get("/book/1234").json()["title"] == "Dune"


def test_catalog_routes_require_admin(client):
    _register(client)
    _login(client, "alice", "pw12345")
    assert client.get("/addbook").status_code == 403
    assert _add_book(client).status_code == 403
    assert client.put("/updatebook/1234", data={"title": "x"}, files=_files()).status_code == 403
    assert client.delete("/book/1234").status_code == 403


def test_admin_removes_book(admin_client, client):
    _add_book(admin_client)
    assert admin_client.delete("/book/1234").status_code == 204
    assert client.get("/book/1234").status_code == 404


def test_reviews_flow(admin_client, client):
    _add_book(admin_client)
    resp = client.post("/book/1234/reviews", data={"comment": "Great", "rating": "5"}, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login"

    resp = admin_client.post("/book/1234/reviews", data={"comment": "Great", "rating": "5"})
    assert resp.status_code == 403

    _register(client)
    _login(client, "alice", "pw12345")
    resp = client.post("/book/1234/reviews", data={"comment": "Great", "rating": "5"})
    assert resp.status_code == 201
    assert [r["comment"] for r in client.get("/book/1234/reviews").json()] == ["Great"]


def test_save_and_list(admin_client, client):
    _add_book(admin_client)
    _register(client)
    _login(client, "alice", "pw12345")
    assert client.post("/book/1234/save").json() == {"isbn": "1234", "saved": True}
    assert [b["isbn"] for b in client.get("/saved").json()["books"]] == ["1234"]
    assert client.delete("/book/1234/save").json()["saved"] is False
    assert admin_client.post("/book/1234/save").status_code == 403


def test_search_routes(admin_client, client):
    _add_book(admin_client, isbn="1234", title="Dune", author="Frank Herbert")
    _add_book(admin_client, isbn="5678", title="Emma", author="Jane Austen")

    resp = client.post("/search?term=herbert")
    assert [b["isbn"] for b in resp.json()["books"]] == ["1234"]

    resp = client.post("/search", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/"

    resp = client.post("/advancedsearch?author=austen&title=emma")
    assert [b["title"] for b in resp.json()["books"]] == ["Emma"]

    resp = client.post("/advancedsearch")
    assert resp.status_code == 400

    assert client.get("/advancedsearch?release_date=yesterday").status_code == 400


def test_request_routes(admin_client, client):
    resp = client.get("/request", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login"
    assert admin_client.get("/request").status_code == 403
    assert admin_client.post("/request", data={"title": "Dune", "letter": "pls"}).status_code == 403

    _register(client)
    _login(client, "alice", "pw12345")
    assert client.get("/request").status_code == 200
    resp = client.post("/request", data={"title": "Dune", "letter": "Please add Dune"})
    assert resp.status_code == 201
    request_id = resp.json()["id"]
    assert resp.json()["status"] == "pending"

    assert client.get("/requests").status_code == 403
    assert [r["id"] for r in admin_client.get("/requests?status=pending").json()] == [request_id]

    resp = admin_client.put("/requests", json={"request_id": request_id, "status": "approved"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"

    resp = admin_client.put("/requests", json={"request_id": request_id, "status": "denied"})
    assert resp.status_code == 409
    assert admin_client.get("/requests?status=approved").json()[0]["id"] == request_id

    assert client.get("/request/mine").json()[0]["status"] == "approved"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
