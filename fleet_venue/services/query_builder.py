"""
Typed optional-filter builder.

List endpoints take many optional query parameters. Instead of stitching SQL
together, each parameter becomes a predicate object bound to a column; a
predicate whose value is None (or an empty string) is inactive and dropped.
The active ones are AND-combined and always reach the database as bound
parameters.

    filters = QueryFilter(
        Equals(VehicleAssignment.vehicleId, vehicle_id),
        AtLeast(VehicleAssignment.startDate, start_date),
        OneOf(VehicleAssignment.status, statuses),
    )
    q = filters.apply(db.query(VehicleAssignment))
"""
from sqlalchemy import and_, extract, or_


class Predicate:
    def __init__(self, column, value):
        self.column = column
        self.value = value

    @property
    def active(self) -> bool:
        if self.value is None:
            return False
        if isinstance(self.value, str) and not self.value.strip():
            return False
        return True

    def clause(self):
        raise NotImplementedError


class Equals(Predicate):
    def clause(self):
        return self.column == self.value


class AtLeast(Predicate):
    def clause(self):
        return self.column >= self.value


class AtMost(Predicate):
    def clause(self):
        return self.column <= self.value


class Before(Predicate):
    def clause(self):
        return self.column < self.value


class After(Predicate):
    def clause(self):
        return self.column > self.value


class Contains(Predicate):
    """Case-insensitive substring match on one or more columns (OR-ed)."""
    def __init__(self, columns, value):
        cols = columns if isinstance(columns, (list, tuple)) else [columns]
        super().__init__(cols, value.strip() if isinstance(value, str) else value)

    def clause(self):
        kw = f"%{self.value}%"
        return or_(*[c.ilike(kw) for c in self.column])


class OneOf(Predicate):
    @property
    def active(self) -> bool:
        return bool(self.value)

    def clause(self):
        return self.column.in_(list(self.value))


class ExtractEquals(Predicate):
    """Match a date part, e.g. ExtractEquals(col, 2024, part="year")."""
    def __init__(self, column, value, part: str):
        super().__init__(column, value)
        self.part = part

    def clause(self):
        return extract(self.part, self.column) == self.value


class QueryFilter:
    def __init__(self, *predicates: Predicate):
        self.predicates = list(predicates)

    def add(self, predicate: Predicate) -> "QueryFilter":
        self.predicates.append(predicate)
        return self

    @property
    def active(self) -> list[Predicate]:
        return [p for p in self.predicates if p.active]

    def clause(self):
        """Combined clause, or None when no predicate is active."""
        clauses = [p.clause() for p in self.active]
        if not clauses:
            return None
        return and_(*clauses)

    def apply(self, query):
        clause = self.clause()
        return query.filter(clause) if clause is not None else query
