# backend/tests/test_main.py

import logging

from app.main import SensitiveDataFilter, sanitize_headers
from conftest import auth_headers

def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to the Forms API"}

def test_api_root_has_no_route(client):
    response = client.get("/api/v1/")
    assert response.status_code == 404

def test_missing_token_is_rejected(client):
    response = client.get("/api/v1/users/me")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"

def test_invalid_token_is_rejected(client):
    response = client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json() == {"detail": "Could not validate credentials"}

def test_current_user(client, make_user):
    user = make_user(name="Ana Lima")
    response = client.get("/api/v1/users/me", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["name"] == "Ana Lima"

def test_deleted_user_loses_access(client, store, make_user):
    user = make_user()
    store.update("users", {"id": user["id"]}, {"deleted": True})
    response = client.get("/api/v1/users/me", headers=auth_headers(user))
    assert response.status_code == 404

def test_log_filter_masks_credentials_only():
    headers = sanitize_headers({"host": "testserver", "Authorization": "Bearer abcdefghijklmnop"})
    message = SensitiveDataFilter().sanitize_message(f"Request headers: {headers}")
    assert "testserver" in message
    assert "Bearer [REDACTED]" in message
    assert "abc" not in message

def test_log_filter_renders_arguments_before_masking():
    record = logging.LogRecord("app", logging.INFO, __file__, 1, "login with password=%s", ("hunter2",), None)
    assert SensitiveDataFilter().filter(record) is True
    assert record.getMessage() == "login with password=[REDACTED]"
