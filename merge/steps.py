"""
Statement builders for merge steps.

Every builder returns a single set-based UPDATE over the whole canonical
table. Staging rows are matched through correlated subqueries; when several
staging rows match one institution the row ingested last (highest id) wins.
"""

from typing import Dict, Iterable, Optional, Sequence
from sqlalchemy import Text, and_, case, func, literal, literal_column, select, update
from sqlalchemy.dialects.postgresql import aggregate_order_by
from sqlalchemy.sql import ColumnElement, Update
from models.institution import CanonicalInstitution

canonical = CanonicalInstitution.__table__

REASON_SEPARATOR = ", "


def _match(model, key: str, conditions: Iterable[ColumnElement] = (), staging_key: Optional[str] = None):
    src = model.__table__
    return and_(
        src.c[staging_key or key].is_not(None),
        src.c[staging_key or key] == canonical.c[key],
        *conditions,
    )


def _latest(model, column: str, match) -> ColumnElement:
    src = model.__table__
    return (
        select(src.c[column])
        .where(match)
        .order_by(src.c.id.desc())
        .limit(1)
        .scalar_subquery()
    )


def _exists(model, match) -> ColumnElement:
    return select(model.__table__.c.id).where(match).exists()


def copy_columns(
    model,
    columns: Sequence[str],
    key: str,
    conditions: Iterable[ColumnElement] = (),
    extra_values: Optional[Dict[str, object]] = None,
    where: Iterable[ColumnElement] = (),
) -> Update:
    """Overwrite ``columns`` from the matching staging row"""
    match = _match(model, key, conditions)
    values = {column: _latest(model, column, match) for column in columns}
    values.update(extra_values or {})
    return update(canonical).values(values).where(_exists(model, match), *where)


def copy_column_if_null(
    model,
    column: str,
    key: str,
    conditions: Iterable[ColumnElement] = (),
    where: Iterable[ColumnElement] = (),
) -> Update:
    """Fill ``column`` only where the canonical value is still NULL"""
    match = _match(model, key, conditions)
    return (
        update(canonical)
        .values({column: _latest(model, column, match)})
        .where(_exists(model, match), canonical.c[column].is_(None), *where)
    )


def set_flag(
    model,
    column: str,
    key: str,
    conditions: Iterable[ColumnElement] = (),
    where: Iterable[ColumnElement] = (),
) -> Update:
    """Set a boolean column to TRUE on match; nothing is ever reset to FALSE"""
    match = _match(model, key, conditions)
    return update(canonical).values({column: True}).where(_exists(model, match), *where)


def ranked_value(
    model,
    column: str,
    key: str,
    ranks: Sequence[str],
    conditions: Iterable[ColumnElement] = (),
) -> Update:
    """
    Set ``column`` to the highest-ranked value among matching staging rows.

    ``ranks`` lists the recognised values lowest first, compared
    case-insensitively; rows with any other value are ignored.
    """
    src = model.__table__
    rank = case(
        *[(func.lower(src.c[column]) == value.lower(), position) for position, value in enumerate(ranks, 1)],
        else_=0,
    )
    match = and_(_match(model, key, conditions), rank > 0)
    best = (
        select(src.c[column])
        .where(match)
        .order_by(rank.desc(), src.c.id.desc())
        .limit(1)
        .scalar_subquery()
    )
    return update(canonical).values({column: best}).where(_exists(model, match))


def _append_reason(reason: ColumnElement) -> ColumnElement:
    current = canonical.c.caution_flag_reason
    return case(
        (current.is_(None), reason),
        else_=current + REASON_SEPARATOR + reason,
    )


def append_caution_reason(
    model,
    reason: str,
    key: str,
    conditions: Iterable[ColumnElement] = (),
    where: Iterable[ColumnElement] = (),
) -> Update:
    """Append one fixed reason to every matching institution"""
    match = _match(model, key, conditions)
    return (
        update(canonical)
        .values(caution_flag_reason=_append_reason(literal(reason, Text)))
        .where(_exists(model, match), *where)
    )


def string_agg(expression: ColumnElement, order_by: ColumnElement, dialect_name: str) -> ColumnElement:
    """Comma-join ``expression``; other dialects follow the input order, which callers sort"""
    if dialect_name == "postgresql":
        return func.string_agg(
            expression,
            aggregate_order_by(literal_column(f"'{REASON_SEPARATOR}'"), order_by),
            type_=Text,
        )
    return func.aggregate_strings(expression, REASON_SEPARATOR)


def append_caution_reasons(
    model,
    value_column: str,
    key: str,
    dialect_name: str,
    prefix: str = "",
    suffix: str = "",
    conditions: Iterable[ColumnElement] = (),
) -> Update:
    """
    Append the distinct ``prefix + value + suffix`` reasons of every match.

    Values are de-duplicated per key before joining, so one institution
    listed several times with the same value contributes the reason once.
    """
    src = model.__table__
    distinct = (
        select(src.c[key].label("key"), src.c[value_column].label("value"))
        .where(src.c[key].is_not(None), src.c[value_column].is_not(None), *conditions)
        .group_by(src.c[key], src.c[value_column])
        .order_by(src.c[key], src.c[value_column])
        .subquery()
    )

    label = distinct.c.value
    if prefix:
        label = literal(prefix, Text) + label
    if suffix:
        label = label + literal(suffix, Text)

    reasons = (
        select(string_agg(label, distinct.c.value, dialect_name))
        .where(distinct.c.key == canonical.c[key])
        .scalar_subquery()
    )
    has_reasons = select(distinct.c.key).where(distinct.c.key == canonical.c[key]).exists()

    return update(canonical).values(caution_flag_reason=_append_reason(reasons)).where(has_reasons)


def set_caution_flag(
    model,
    key: str,
    conditions: Iterable[ColumnElement] = (),
    where: Iterable[ColumnElement] = (),
) -> Update:
    return set_flag(model, "caution_flag", key, conditions, where)


def is_public() -> ColumnElement:
    return func.lower(canonical.c.type) == "public"
