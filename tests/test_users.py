# backend/tests/test_users.py

from conftest import auth_headers


def test_user_edits_own_profile(client, store, make_user):
    user = make_user(name="Ana Lima")

    response = client.put(
        f"/api/v1/users/{user['id']}",
        json={"name": "Ana Souza", "anonymous": True, "city": "Recife", "state": "PE", "institution": "UFPE"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Ana Souza"
    assert body["anonymous"] is True
    assert (body["city"], body["state"], body["institution"]) == ("Recife", "PE", "UFPE")
    assert store.find_one("users", {"id": user["id"]})["anonymous"] is True


def test_user_cannot_edit_someone_else(client, make_user):
    user, other = make_user(), make_user()
    response = client.put(f"/api/v1/users/{other['id']}", json={"name": "Hijacked"}, headers=auth_headers(user))
    assert response.status_code == 403


def test_only_admins_change_roles(client, make_user):
    student = make_user()

    response = client.put(f"/api/v1/users/{student['id']}", json={"role": "admin"}, headers=auth_headers(student))
    assert response.status_code == 403
    assert response.json() == {"detail": "Access denied. Only administrators can change roles"}

    admin = make_user(role="admin")
    promoted = client.put(
        f"/api/v1/users/{student['id']}", json={"role": "teacher_analyst"}, headers=auth_headers(admin)
    )
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "teacher_analyst"


def test_unknown_role_is_rejected(client, make_user):
    admin = make_user(role="admin")
    response = client.put(f"/api/v1/users/{admin['id']}", json={"role": "superuser"}, headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid role"}


def test_email_already_in_use_is_rejected(client, store, make_user):
    user, other = make_user(), make_user()
    store.update("users", {"id": other["id"]}, {"deleted": True})

    response = client.put(f"/api/v1/users/{user['id']}", json={"email": other["email"]}, headers=auth_headers(user))

    assert response.status_code == 400
    assert response.json() == {"detail": "Email already registered"}


def test_keeping_own_email_is_allowed(client, make_user):
    user = make_user()
    response = client.put(f"/api/v1/users/{user['id']}", json={"email": user["email"]}, headers=auth_headers(user))
    assert response.status_code == 200


def test_read_user_is_admin_or_self(client, make_user):
    user, other, admin = make_user(), make_user(), make_user(role="admin")

    assert client.get(f"/api/v1/users/{user['id']}", headers=auth_headers(user)).status_code == 200
    assert client.get(f"/api/v1/users/{user['id']}", headers=auth_headers(admin)).status_code == 200
    assert client.get(f"/api/v1/users/{user['id']}", headers=auth_headers(other)).status_code == 403
    missing = client.get("/api/v1/users/6f1c2a8e-25a4-4bf2-9b8e-2c36b9d7f0a1", headers=auth_headers(admin))
    assert missing.status_code == 404


def test_admin_soft_deletes_user(client, store, make_user):
    user, admin = make_user(), make_user(role="admin")

    assert client.delete(f"/api/v1/users/{user['id']}", headers=auth_headers(user)).status_code == 403

    response = client.delete(f"/api/v1/users/{user['id']}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert store.find_one("users", {"id": user["id"]}) is None
    assert store.find_one("users", {"id": user["id"]}, include_deleted=True)["deleted"] is True
    assert client.get(f"/api/v1/users/{user['id']}", headers=auth_headers(admin)).status_code == 404


def test_assignable_lists_respondents_only(client, make_user):
    admin = make_user(role="admin")
    student = make_user(role="student", name="Bruno")
    make_user(role="teacher_analyst", name="Carla")

    response = client.get("/api/v1/users/assignable", headers=auth_headers(admin))

    assert [user["id"] for user in response.json()] == [student["id"]]
