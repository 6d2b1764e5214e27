"""
Tests for the ingredient position sequencer.
Every user's sort values must stay exactly 1..N through insert, move and delete.
"""
import random
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from db.init_db import seed_units
from db.models import Base
from repositories.ingredients import IngredientRepository
from repositories.units import UnitRepository
from services.exceptions import NotFoundError, NothingToSortError
from services.sequencer import IngredientSequencer, clamp_insert_position


@pytest.fixture
def test_db():
    """In-memory SQLite database for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    db = SessionLocal()
    seed_units(db)
    return db


@pytest.fixture
def user_ids():
    """Create test user IDs."""
    return {
        "user1": uuid4(),
        "user2": uuid4(),
    }


@pytest.fixture
def unit_id(test_db):
    return UnitRepository(test_db).get_all()[0].id


@pytest.fixture
def sequencer(test_db):
    return IngredientSequencer(test_db)


def names(sequencer, user_id):
    return [ingredient.name for ingredient in sequencer.list(user_id)]


def assert_dense(test_db, user_id):
    sorts = IngredientRepository(test_db).sort_values(user_id)
    assert sorts == list(range(1, len(sorts) + 1))


def seed(sequencer, user_id, unit_id, *ingredient_names):
    return [sequencer.insert(user_id, name, unit_id) for name in ingredient_names]


class TestClampInsertPosition:
    """Test insert position clamping."""

    def test_omitted_appends(self):
        assert clamp_insert_position(None, 3) == 4

    def test_empty_owner_starts_at_one(self):
        assert clamp_insert_position(None, 0) == 1

    def test_below_one(self):
        assert clamp_insert_position(0, 3) == 1
        assert clamp_insert_position(-7, 3) == 1

    def test_past_end(self):
        assert clamp_insert_position(9, 3) == 4

    def test_in_range(self):
        assert clamp_insert_position(2, 3) == 2
        assert clamp_insert_position(4, 3) == 4


class TestInsert:
    """Test IngredientSequencer.insert."""

    def test_append(self, sequencer, test_db, user_ids, unit_id):
        a, b, c = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        assert [a.sort, b.sort, c.sort] == [1, 2, 3]
        assert names(sequencer, user_ids["user1"]) == ["A", "B", "C"]

    def test_insert_at_front_shifts_others(self, sequencer, test_db, user_ids, unit_id):
        seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        d = sequencer.insert(user_ids["user1"], "D", unit_id, 1)

        assert d.sort == 1
        assert names(sequencer, user_ids["user1"]) == ["D", "A", "B", "C"]
        assert_dense(test_db, user_ids["user1"])

    def test_insert_in_middle(self, sequencer, test_db, user_ids, unit_id):
        seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        sequencer.insert(user_ids["user1"], "D", unit_id, 2)

        assert names(sequencer, user_ids["user1"]) == ["A", "D", "B", "C"]
        assert_dense(test_db, user_ids["user1"])

    def test_insert_zero_clamps_to_one(self, sequencer, test_db, user_ids, unit_id):
        seed(sequencer, user_ids["user1"], unit_id, "A", "B")

        d = sequencer.insert(user_ids["user1"], "D", unit_id, 0)

        assert d.sort == 1
        assert names(sequencer, user_ids["user1"]) == ["D", "A", "B"]

    def test_insert_past_end_clamps_to_max_plus_one(self, sequencer, test_db, user_ids, unit_id):
        seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        d = sequencer.insert(user_ids["user1"], "D", unit_id, 8)

        assert d.sort == 4
        assert_dense(test_db, user_ids["user1"])

    def test_insert_unknown_unit(self, sequencer, test_db, user_ids):
        with pytest.raises(NotFoundError) as exc:
            sequencer.insert(user_ids["user1"], "A", 9999)

        assert exc.value.resource == "Unit"
        assert sequencer.list(user_ids["user1"]) == []

    def test_users_are_numbered_independently(self, sequencer, test_db, user_ids, unit_id):
        seed(sequencer, user_ids["user1"], unit_id, "A", "B")

        other = sequencer.insert(user_ids["user2"], "X", unit_id)

        assert other.sort == 1
        assert names(sequencer, user_ids["user1"]) == ["A", "B"]


class TestMove:
    """Test IngredientSequencer.move."""

    def test_move_last_to_first(self, sequencer, test_db, user_ids, unit_id):
        a, b, c = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        new_sort = sequencer.move(user_ids["user1"], c.id, 1)

        assert new_sort == 1
        assert names(sequencer, user_ids["user1"]) == ["C", "A", "B"]
        assert_dense(test_db, user_ids["user1"])

    def test_move_towards_end_lands_before_target(self, sequencer, test_db, user_ids, unit_id):
        a, b, c, d = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C", "D")

        new_sort = sequencer.move(user_ids["user1"], a.id, 3)

        assert new_sort == 2
        assert names(sequencer, user_ids["user1"]) == ["B", "A", "C", "D"]
        assert_dense(test_db, user_ids["user1"])

    def test_move_to_end(self, sequencer, test_db, user_ids, unit_id):
        a, b, c = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        new_sort = sequencer.move(user_ids["user1"], a.id, 4)

        assert new_sort == 3
        assert names(sequencer, user_ids["user1"]) == ["B", "C", "A"]

    def test_move_past_end_clamps(self, sequencer, test_db, user_ids, unit_id):
        a, b, c = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        new_sort = sequencer.move(user_ids["user1"], b.id, 50)

        assert new_sort == 3
        assert names(sequencer, user_ids["user1"]) == ["A", "C", "B"]

    def test_move_below_one_clamps(self, sequencer, test_db, user_ids, unit_id):
        a, b, c = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        new_sort = sequencer.move(user_ids["user1"], b.id, -3)

        assert new_sort == 1
        assert names(sequencer, user_ids["user1"]) == ["B", "A", "C"]

    def test_move_to_current_position_rejected(self, sequencer, test_db, user_ids, unit_id):
        a, b, c = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        with pytest.raises(NothingToSortError):
            sequencer.move(user_ids["user1"], b.id, 2)

        assert names(sequencer, user_ids["user1"]) == ["A", "B", "C"]

    def test_move_last_past_end_rejected(self, sequencer, test_db, user_ids, unit_id):
        a, b, c = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        with pytest.raises(NothingToSortError):
            sequencer.move(user_ids["user1"], c.id, 10)

        assert names(sequencer, user_ids["user1"]) == ["A", "B", "C"]
        assert_dense(test_db, user_ids["user1"])

    def test_move_one_slot_down_keeps_position(self, sequencer, test_db, user_ids, unit_id):
        a, b, c = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")

        new_sort = sequencer.move(user_ids["user1"], a.id, 2)

        assert new_sort == 1
        assert names(sequencer, user_ids["user1"]) == ["A", "B", "C"]

    def test_move_other_users_ingredient(self, sequencer, test_db, user_ids, unit_id):
        a, b = seed(sequencer, user_ids["user1"], unit_id, "A", "B")

        with pytest.raises(NotFoundError):
            sequencer.move(user_ids["user2"], b.id, 1)

        assert names(sequencer, user_ids["user1"]) == ["A", "B"]

    def test_move_does_not_touch_other_users(self, sequencer, test_db, user_ids, unit_id):
        a, b, c = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C")
        seed(sequencer, user_ids["user2"], unit_id, "X", "Y", "Z")

        sequencer.move(user_ids["user1"], c.id, 1)

        assert names(sequencer, user_ids["user2"]) == ["X", "Y", "Z"]
        assert_dense(test_db, user_ids["user2"])


class TestDelete:
    """Test IngredientSequencer.delete."""

    def test_delete_closes_gap(self, sequencer, test_db, user_ids, unit_id):
        a, b, c, d = seed(sequencer, user_ids["user1"], unit_id, "A", "B", "C", "D")

        sequencer.delete(user_ids["user1"], b.id)

        remaining = sequencer.list(user_ids["user1"])
        assert [i.name for i in remaining] == ["A", "C", "D"]
        assert [i.sort for i in remaining] == [1, 2, 3]

    def test_delete_last(self, sequencer, test_db, user_ids, unit_id):
        a, b = seed(sequencer, user_ids["user1"], unit_id, "A", "B")

        sequencer.delete(user_ids["user1"], b.id)

        assert names(sequencer, user_ids["user1"]) == ["A"]
        assert_dense(test_db, user_ids["user1"])

    def test_delete_other_users_ingredient(self, sequencer, test_db, user_ids, unit_id):
        (a,) = seed(sequencer, user_ids["user1"], unit_id, "A")

        with pytest.raises(NotFoundError):
            sequencer.delete(user_ids["user2"], a.id)

        assert names(sequencer, user_ids["user1"]) == ["A"]


class TestUpdate:
    """Test IngredientSequencer.update."""

    def test_rename_keeps_position(self, sequencer, test_db, user_ids, unit_id):
        a, b = seed(sequencer, user_ids["user1"], unit_id, "A", "B")

        updated = sequencer.update(user_ids["user1"], b.id, name="Butter")

        assert updated.name == "Butter"
        assert updated.sort == 2

    def test_change_unit(self, sequencer, test_db, user_ids, unit_id):
        (a,) = seed(sequencer, user_ids["user1"], unit_id, "A")
        other_unit = UnitRepository(test_db).get_all()[1]

        updated = sequencer.update(user_ids["user1"], a.id, unit_id=other_unit.id)

        assert updated.unit_id == other_unit.id
        assert updated.unit.name == other_unit.name

    def test_unknown_unit(self, sequencer, test_db, user_ids, unit_id):
        (a,) = seed(sequencer, user_ids["user1"], unit_id, "A")

        with pytest.raises(NotFoundError):
            sequencer.update(user_ids["user1"], a.id, unit_id=9999)

        assert sequencer.get(user_ids["user1"], a.id).unit_id == unit_id


class TestDenseOrdering:
    """Random insert/move/delete sequences keep positions dense."""

    def test_random_operations(self, sequencer, test_db, user_ids, unit_id):
        rng = random.Random(1234)
        user_id = user_ids["user1"]

        for step in range(60):
            ingredients = sequencer.list(user_id)
            action = rng.choice(["insert", "insert", "move", "delete"])

            if action == "insert" or not ingredients:
                sequencer.insert(user_id, f"I{step}", unit_id, rng.randint(-1, len(ingredients) + 3))
            elif action == "move":
                target = rng.choice(ingredients)
                try:
                    sequencer.move(user_id, target.id, rng.randint(-1, len(ingredients) + 3))
                except NothingToSortError:
                    pass
            else:
                sequencer.delete(user_id, rng.choice(ingredients).id)

            assert_dense(test_db, user_id)
