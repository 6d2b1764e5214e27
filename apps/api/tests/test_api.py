"""
HTTP tests for the planner endpoints.
Runs the FastAPI app against an in-memory SQLite database shared across threads.
"""
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.init_db import seed_units
from db.models import Base
from db.session import get_session
from main import app


@pytest.fixture
def client():
    """TestClient with get_session bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine)
    with TestingSession() as db:
        seed_units(db)

    def override_get_session():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user():
    return {"user_id": str(uuid4())}


def create_ingredient(client, user, name, sort=None):
    unit_id = client.get("/units", params=user).json()[0]["id"]
    payload = {"name": name, "unit_id": unit_id}
    if sort is not None:
        payload["sort"] = sort
    response = client.post("/ingredients", params=user, json=payload)
    assert response.status_code == 201
    return response.json()


class TestBasics:
    """Health check, units and user_id handling."""

    def test_health_check(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_units(self, client, user):
        response = client.get("/units", params=user)

        assert response.status_code == 200
        assert [u["name"] for u in response.json()] == ["g", "kg", "ml", "l", "none"]

    def test_invalid_user_id(self, client):
        response = client.get("/ingredients", params={"user_id": "not-a-uuid"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid user_id format"


class TestIngredientEndpoints:
    """Ingredient CRUD and sorting over HTTP."""

    def test_create_and_list(self, client, user):
        create_ingredient(client, user, "A")
        created = create_ingredient(client, user, "B", sort=1)

        assert created["sort"] == 1
        assert created["unit"] == "g"
        listed = client.get("/ingredients", params=user).json()
        assert [(i["name"], i["sort"]) for i in listed] == [("B", 1), ("A", 2)]

    def test_move(self, client, user):
        create_ingredient(client, user, "A")
        create_ingredient(client, user, "B")
        c = create_ingredient(client, user, "C")

        response = client.patch("/ingredients/sort", params=user, json={"id": c["id"], "new_sort": 1})

        assert response.status_code == 200
        assert response.json() == {"id": c["id"], "sort": 1}
        listed = client.get("/ingredients", params=user).json()
        assert [i["name"] for i in listed] == ["C", "A", "B"]

    def test_move_to_same_position(self, client, user):
        a = create_ingredient(client, user, "A")

        response = client.patch("/ingredients/sort", params=user, json={"id": a["id"], "new_sort": 1})

        assert response.status_code == 400
        assert response.json()["detail"] == "Nothing to sort"

    def test_update(self, client, user):
        a = create_ingredient(client, user, "A")

        response = client.put(f"/ingredients/{a['id']}", params=user, json={"name": "Apple"})

        assert response.status_code == 200
        assert response.json()["name"] == "Apple"
        assert response.json()["sort"] == 1

    def test_delete_renumbers(self, client, user):
        a = create_ingredient(client, user, "A")
        create_ingredient(client, user, "B")

        response = client.delete(f"/ingredients/{a['id']}", params=user)

        assert response.status_code == 204
        listed = client.get("/ingredients", params=user).json()
        assert [(i["name"], i["sort"]) for i in listed] == [("B", 1)]

    def test_other_users_ingredient(self, client, user):
        a = create_ingredient(client, user, "A")

        response = client.delete(f"/ingredients/{a['id']}", params={"user_id": str(uuid4())})

        assert response.status_code == 404
        assert response.json()["detail"] == "Ingredient not found"


class TestRecipeEndpoints:
    """Recipe CRUD over HTTP."""

    def test_crud(self, client, user):
        rice = create_ingredient(client, user, "Rice")

        created = client.post(
            "/recipes", params=user, json={"name": "Rice", "ingredients": [{"id": rice["id"], "quantity": 2}]}
        )
        assert created.status_code == 201
        recipe_id = created.json()["id"]
        assert created.json()["ingredients"] == [
            {"id": rice["id"], "name": "Rice", "unit": "g", "quantity": 2}
        ]

        listed = client.get("/recipes", params=user).json()
        assert [(r["name"], r["ingredients"]) for r in listed] == [("Rice", 1)]

        updated = client.put(f"/recipes/{recipe_id}", params=user, json={"name": "Boiled rice"})
        assert updated.json()["name"] == "Boiled rice"

        assert client.delete(f"/recipes/{recipe_id}", params=user).status_code == 204
        assert client.get(f"/recipes/{recipe_id}", params=user).status_code == 404

    def test_zero_quantity(self, client, user):
        rice = create_ingredient(client, user, "Rice")

        response = client.post(
            "/recipes", params=user, json={"name": "Rice", "ingredients": [{"id": rice["id"], "quantity": 0}]}
        )

        assert response.status_code == 400


class TestShoppingListEndpoints:
    """Shopping list ledger over HTTP."""

    def test_full_flow(self, client, user):
        flour = create_ingredient(client, user, "Flour")
        recipe = client.post(
            "/recipes", params=user, json={"name": "Bread", "ingredients": [{"id": flour["id"], "quantity": 500}]}
        ).json()
        shopping_list = client.post("/shopping-lists", params=user, json={"name": "Weekend"})
        assert shopping_list.status_code == 201
        list_id = shopping_list.json()["id"]
        base = f"/shopping-lists/{list_id}"

        client.post(f"{base}/ingredients/{flour['id']}", params=user, json={"quantity": 3})
        manual = client.post(f"{base}/ingredients/{flour['id']}", params=user, json={"quantity": 2})
        assert manual.status_code == 201
        assert manual.json()["quantity"] == 5
        assert manual.json()["source"] == "manual"

        added = client.post(f"{base}/recipes/{recipe['id']}", params=user)
        assert added.status_code == 201
        assert added.json()[0]["source"] == recipe["id"]

        detail = client.get(base, params=user).json()
        assert len(detail["ingredients"]) == 1
        item = detail["ingredients"][0]
        assert item["total"] == 505
        assert {q["source"] for q in item["quantities"]} == {"manual", recipe["id"]}

        checked = client.patch(f"{base}/ingredients/{flour['id']}/check", params=user)
        assert checked.json() == {"ingredient_id": flour["id"], "checked": True}

        summaries = client.get("/shopping-lists", params=user).json()
        assert summaries == [{"id": list_id, "name": "Weekend", "ingredients": 1, "checked": 1}]

        removed = client.delete(f"{base}/recipes/{recipe['id']}", params=user)
        assert removed.json() == {"removed": 1}

        response = client.delete(f"{base}/quantities/{manual.json()['id']}", params=user)
        assert response.status_code == 204
        assert client.get(base, params=user).json()["ingredients"] == []

    def test_update_quantity(self, client, user):
        flour = create_ingredient(client, user, "Flour")
        list_id = client.post("/shopping-lists", params=user, json={"name": "Weekend"}).json()["id"]
        entry = client.post(
            f"/shopping-lists/{list_id}/ingredients/{flour['id']}", params=user, json={"quantity": 3}
        ).json()

        response = client.put(
            f"/shopping-lists/{list_id}/quantities/{entry['id']}", params=user, json={"quantity": 7}
        )
        assert response.json()["quantity"] == 7

        response = client.put(
            f"/shopping-lists/{list_id}/quantities/{entry['id']}", params=user, json={"quantity": 0}
        )
        assert response.status_code == 400

    def test_remove_ingredient(self, client, user):
        flour = create_ingredient(client, user, "Flour")
        list_id = client.post("/shopping-lists", params=user, json={"name": "Weekend"}).json()["id"]
        client.post(f"/shopping-lists/{list_id}/ingredients/{flour['id']}", params=user, json={"quantity": 3})

        response = client.delete(f"/shopping-lists/{list_id}/ingredients/{flour['id']}", params=user)

        assert response.status_code == 204
        assert client.get(f"/shopping-lists/{list_id}", params=user).json()["ingredients"] == []

    def test_rename_and_delete(self, client, user):
        list_id = client.post("/shopping-lists", params=user, json={"name": "Weekend"}).json()["id"]

        renamed = client.put(f"/shopping-lists/{list_id}", params=user, json={"name": "Monday"})
        assert renamed.json()["name"] == "Monday"

        assert client.delete(f"/shopping-lists/{list_id}", params=user).status_code == 204
        response = client.get(f"/shopping-lists/{list_id}", params=user)
        assert response.status_code == 404
        assert response.json()["detail"] == "Shopping list not found"
