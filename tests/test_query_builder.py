from fleet_venue.models import Employee
from fleet_venue.services.query_builder import (
    QueryFilter, Equals, Contains, OneOf, AtLeast,
)


def test_none_and_blank_values_are_inactive():
    filters = QueryFilter(
        Equals(Employee.departmentId, None),
        Contains([Employee.firstName, Employee.lastName], "   "),
        OneOf(Employee.id, []),
        AtLeast(Employee.id, 0),
    )
    assert [type(p) for p in filters.active] == [AtLeast]


def test_no_active_predicate_leaves_query_untouched(db, driver, requester):
    filters = QueryFilter(Equals(Employee.departmentId, None), Contains(Employee.email, ""))
    assert filters.clause() is None
    assert filters.apply(db.query(Employee)).count() == 2


def test_contains_is_case_insensitive_across_columns(db, driver, requester):
    filters = QueryFilter(Contains([Employee.firstName, Employee.lastName], "LOP"))
    assert [e.id for e in filters.apply(db.query(Employee)).all()] == [driver.id]


def test_search_text_is_bound_not_interpolated(db, driver, requester):
    filters = QueryFilter(Contains(Employee.firstName, "' OR '1'='1"))
    assert filters.apply(db.query(Employee)).count() == 0


def test_predicates_are_and_combined(db, driver, requester):
    filters = QueryFilter(
        Equals(Employee.departmentId, driver.departmentId),
        OneOf(Employee.id, [driver.id, requester.id]),
    ).add(Contains(Employee.email, "luis"))
    assert [e.id for e in filters.apply(db.query(Employee)).all()] == [requester.id]
