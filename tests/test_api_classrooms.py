from school.app.api.classrooms import router as classrooms_router
from school.app.api.teachers import router as teachers_router
from school.app.main import API_PREFIX

from conftest import admin_headers, bearer, teacher_payload

CLASSROOMS = f"{API_PREFIX}/classrooms"
TEACHERS = f"{API_PREFIX}/teachers"


def _setup(make_client):
    client = make_client(classrooms_router, teachers_router)
    return client, admin_headers(client)


def test_classroom_crud(make_client) -> None:
    client, headers = _setup(make_client)
    teacher = client.post(TEACHERS, json=teacher_payload(), headers=headers).json()

    resp = client.post(
        CLASSROOMS,
        json={"name": "Room 101", "capacity": 30, "grade": 9, "teacher_id": teacher["id"]},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    room = resp.json()
    assert room["teacher_id"] == teacher["id"]

    resp = client.patch(f"{CLASSROOMS}/{room['id']}", json={"capacity": 32}, headers=headers)
    assert resp.json()["capacity"] == 32
    assert resp.json()["teacher_id"] == teacher["id"]

    # teacher_id is nullable, so an explicit null unassigns it
    resp = client.patch(f"{CLASSROOMS}/{room['id']}", json={"teacher_id": None}, headers=headers)
    assert resp.json()["teacher_id"] is None

    assert client.get(f"{CLASSROOMS}/{room['id']}", headers=headers).json()["name"] == "Room 101"
    assert client.delete(f"{CLASSROOMS}/{room['id']}", headers=headers).status_code == 204
    assert client.get(f"{CLASSROOMS}/{room['id']}", headers=headers).status_code == 404


def test_classroom_validation(make_client) -> None:
    client, headers = _setup(make_client)
    assert client.post(CLASSROOMS, json={"name": "Room", "capacity": 0, "grade": 9}, headers=headers).status_code == 422
    assert client.post(CLASSROOMS, json={"name": "", "capacity": 10, "grade": 9}, headers=headers).status_code == 422


def test_unknown_teacher_conflicts(make_client) -> None:
    client, headers = _setup(make_client)
    resp = client.post(
        CLASSROOMS,
        json={"name": "Room 1", "capacity": 10, "grade": 1, "teacher_id": 777},
        headers=headers,
    )
    assert resp.status_code == 409


def test_list_search_and_paging(make_client) -> None:
    client, headers = _setup(make_client)
    for name in ("Room 101", "Room 102", "Science Lab"):
        client.post(CLASSROOMS, json={"name": name, "capacity": 20, "grade": 8}, headers=headers)

    resp = client.get(CLASSROOMS, params={"search": "room", "order": "desc"}, headers=headers)
    assert [c["name"] for c in resp.json()] == ["Room 102", "Room 101"]

    resp = client.get(CLASSROOMS, params={"sort_by": "name", "limit": 1}, headers=headers)
    assert [c["name"] for c in resp.json()] == ["Room 101"]


def test_classrooms_are_exec_only(make_client) -> None:
    client, headers = _setup(make_client)
    client.post(TEACHERS, json=teacher_payload(), headers=headers)
    login = client.post(
        f"{TEACHERS}/login",
        json={"email": "teacher1@classnama.io", "password": "teacherpassword"},
    )
    teacher_headers = bearer(login.json()["token"])

    assert client.get(CLASSROOMS).status_code == 401
    assert client.get(CLASSROOMS, headers=teacher_headers).status_code == 403
