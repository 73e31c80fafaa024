from __future__ import annotations

from agenda import models


def _seed_employees(session):
    session.add_all(
        [
            models.Employee(name="Andi Wijaya", email="andi@example.com", position="Teller"),
            models.Employee(name="Bayu Saputra", email="bayu@example.com", position="Relationship Manager"),
            models.Employee(name="Citra Lestari", email="citra@example.com", position="Branch Manager"),
        ]
    )
    session.flush()


def test_search_requires_sign_in(client):
    assert client.get("/employees/search").status_code == 401
    assert client.get("/branches/search").status_code == 401


def test_employee_search_is_case_insensitive(auth_client, session):
    _seed_employees(session)

    response = auth_client.get("/employees/search", params={"search": "MANAGER"})
    assert response.status_code == 200
    body = response.json()
    assert [employee["name"] for employee in body["employees"]] == ["Bayu Saputra", "Citra Lestari"]
    assert body["total"] == 2
    assert body["has_more"] is False
    assert body["next_page"] is None


def test_employee_search_pages(auth_client, session):
    _seed_employees(session)

    first = auth_client.get("/employees/search", params={"limit": 2}).json()
    assert [employee["name"] for employee in first["employees"]] == ["Andi Wijaya", "Bayu Saputra"]
    assert first["has_more"] is True
    assert first["next_page"] == 2

    second = auth_client.get("/employees/search", params={"limit": 2, "page": 2}).json()
    assert [employee["name"] for employee in second["employees"]] == ["Citra Lestari"]
    assert second["has_more"] is False


def test_branch_search(auth_client, session, branch):
    session.add(models.Branch(name="Cabang Malang"))
    session.flush()

    body = auth_client.get("/branches/search", params={"search": "surabaya"}).json()
    assert [item["name"] for item in body["branches"]] == ["Cabang Surabaya"]
    assert body["branches"][0]["id"] == branch.id
    assert body["total"] == 1


def test_search_term_is_not_a_pattern(auth_client, session):
    _seed_employees(session)

    body = auth_client.get("/employees/search", params={"search": "%"}).json()
    assert body["employees"] == []
