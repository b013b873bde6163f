"""Tests for Column descriptors and typed Records."""

from __future__ import annotations

import pickle

import pydantic
import pytest

from dataobject import Column, Record, RecordFactory
from dataobject.types import NULL_EQ_ERROR, NULL_NE_ERROR, ColumnProxy
from dataobject.where import Where
from tests.conftest import Membership, User


class Person(Record, table="users"):
    person_id: Column[int] = Column(primary_key=True, name="id")
    full_name: Column[str] = Column(name="name")
    years: Column[int] = Column(0, name="age")


class TestRecordDefinition:
    def test_table_and_key(self):
        assert User.__table__ == "users"
        assert User.__primary_key__ == ("id",)
        assert User.__record_columns__ == ("id", "name", "email", "age", "active")

    def test_composite_key_in_declaration_order(self):
        assert Membership.__primary_key__ == ("user_id", "group_id")

    def test_missing_primary_key(self):
        with pytest.raises(TypeError, match="primary_key"):

            class NoKey(Record, table="things"):
                name: Column[str]

    def test_abstract_base_shares_columns(self):
        class Timestamped(Record):
            created_at: Column[str] = ""

        class Post(Timestamped, table="posts"):
            id: Column[int] = Column(primary_key=True)

        assert Post.__record_columns__ == ("created_at", "id")
        with pytest.raises(TypeError, match="no table"):
            Timestamped(None)


class TestColumnProxy:
    def test_class_access_returns_proxy(self):
        assert isinstance(User.name, ColumnProxy)
        assert User.name.qualified_name == "users.name"

    def test_comparisons_build_where(self):
        assert (User.age >= 18).get_where() == "users.age >= 18"
        assert (User.age < 65).get_where() == "users.age < 65"
        assert (User.name == "Alice").get_where() == "users.name = 'Alice'"
        assert (User.name != "Bob").get_where() == "users.name <> 'Bob'"

    def test_in_and_like(self):
        assert User.id.in_([1, 2]).get_where() == "users.id IN (1,2)"
        assert User.name.like("A%").get_where() == "users.name LIKE 'A%'"

    def test_null_checks(self):
        assert User.email.is_null().get_where() == "users.email IS NULL"
        assert User.email.is_not_null().get_where() == "users.email IS NOT NULL"

    def test_none_comparison_is_rejected(self):
        with pytest.raises(TypeError, match=NULL_EQ_ERROR.split(" ")[0]):
            User.email == None  # noqa: B015, E711
        with pytest.raises(TypeError) as exc_info:
            User.email != None  # noqa: B015, E711
        assert str(exc_info.value) == NULL_NE_ERROR

    def test_order_helpers(self):
        assert User.name.asc() == "users.name ASC"
        assert User.age.desc() == "users.age DESC"

    def test_proxies_compose(self):
        cond = Where(User.age >= 18).add_and(User.active == True)  # noqa: E712
        assert cond.get_where() == "(users.age >= 18) AND (users.active = 1)"


class TestRecordInstances:
    def test_construct_validates(self, db):
        user = User(db, id=1, name="Alice", age="34")
        assert user.age == 34
        assert user.email is None
        assert user.active is True
        assert dict(user.primary_key) == {"id": 1}

    def test_invalid_row(self, db):
        with pytest.raises(pydantic.ValidationError):
            User(db, id=1, name="Alice", age="not a number")

    def test_from_row_ignores_extra_columns(self, db):
        user = User.from_row(db, {"id": 2, "name": "Bob", "age": 27, "active": 1, "title": "x"})
        assert user.to_dict() == {"id": 2, "name": "Bob", "email": None, "age": 27, "active": True}

    def test_assignment_marks_column_dirty(self, db):
        user = User(db, id=1, name="Alice")
        user.name = "Alicia"
        assert user.name == "Alicia"
        assert user.modified_fields == {"name": "Alicia"}
        assert user._is_modified()

    def test_assignment_is_validated(self, db):
        user = User(db, id=1, name="Alice")
        with pytest.raises(pydantic.ValidationError):
            user.age = "old"
        assert not user._is_modified()

    def test_assignment_coerces(self, db):
        user = User(db, id=1, name="Alice")
        user.age = "42"
        assert user.modified_fields == {"age": 42}

    def test_primary_key_assignment_rejected(self, db):
        user = User(db, id=1, name="Alice")
        with pytest.raises(AttributeError, match="read-only"):
            user.id = 2

    def test_save_updates_only_assigned_column(self, db, driver):
        user = User(db, id=1, name="Alice", age=34)
        user.age = 35
        user.save()
        assert db.calls_to("update") == [("users", {"age": 35}, "id = 1")]
        assert driver.fetch_one("SELECT age FROM users WHERE id = 1") == 35
        assert user.age == 35
        assert user.modified_fields == {}

    def test_equality(self, db):
        assert User(db, id=1, name="A") == User(db, id=1, name="A")
        assert User(db, id=1, name="A") != User(db, id=1, name="B")

    def test_repr(self, db):
        assert repr(User(db, id=1, name="A")) == (
            "User(id=1, name='A', email=None, age=0, active=True)"
        )

    def test_pickle_round_trip_drops_driver(self, db, driver):
        user = User(db, id=3, name="Carol")
        user.name = "Caroline"
        restored = pickle.loads(pickle.dumps(user))
        assert restored.name == "Caroline"
        assert restored.modified_fields == {"name": "Caroline"}
        restored.bind(driver)
        restored.save()
        assert driver.fetch_one("SELECT name FROM users WHERE id = 3") == "Caroline"


class TestColumnNames:
    def test_storage_names(self):
        assert Person.__primary_key__ == ("id",)
        assert Person.__record_columns__ == ("person_id", "full_name", "years")
        assert Person.full_name.qualified_name == "users.name"

    def test_from_row_maps_storage_names(self, db):
        person = Person.from_row(db, {"id": 4, "name": "Dave", "age": 19, "email": None})
        assert (person.person_id, person.full_name, person.years) == (4, "Dave", 19)
        assert person.primary_key == {"id": 4}

    def test_factory_and_save(self, db, driver):
        people = RecordFactory(db, Person)
        person = people.get_one(2)
        assert person.full_name == "Bob"
        person.years = 28
        assert person.modified_fields == {"age": 28}
        person.save()
        assert db.calls_to("update") == [("users", {"age": 28}, "id = 2")]
        assert driver.fetch_one("SELECT age FROM users WHERE id = 2") == 28

    def test_conditions_use_storage_names(self, db):
        result = RecordFactory(db, Person).get_from_where(Person.full_name == "Eve")
        assert [p.person_id for p in result] == [5]
