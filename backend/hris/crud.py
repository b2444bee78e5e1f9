# backend/hris/crud.py
"""
Single-row storage operations shared by every entity router.

``compile_filter`` resolves a ``FilterDescriptor`` against a model; names the
model does not have fail here with ``StorageError``. ``EntityStore`` runs one
statement per operation and maps database failures onto the API's failure
kinds: a foreign key that points nowhere is ``NotFound``, any other
constraint violation is ``Conflict``.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from hris.errors import Conflict, NotFound, StorageError
from hris.query import FilterDescriptor, Predicate
from hris.schemas.page import Page

logger = logging.getLogger(__name__)

COUNT_RELATION = "_count"


def _like(value: Any) -> str:
    text = str(value)
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


OPERATORS = {
    "equals": lambda col, v: col.is_(None) if v is None else col == v,
    "not": lambda col, v: col.is_not(None) if v is None else col != v,
    "in": lambda col, v: col.in_(v if isinstance(v, list) else [v]),
    "notIn": lambda col, v: col.not_in(v if isinstance(v, list) else [v]),
    "contains": lambda col, v: col.ilike(f"%{_like(v)}%", escape="\\"),
    "startsWith": lambda col, v: col.ilike(f"{_like(v)}%", escape="\\"),
    "endsWith": lambda col, v: col.ilike(f"%{_like(v)}", escape="\\"),
    "gt": lambda col, v: col > v,
    "gte": lambda col, v: col >= v,
    "lt": lambda col, v: col < v,
    "lte": lambda col, v: col <= v,
}

# operators that compare text and take the value as given
TEXT_OPERATORS = frozenset({"contains", "startsWith", "endsWith"})


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _column(model, name: str):
    col = model.__table__.c.get(name)
    if col is None:
        raise StorageError(f"Unknown field '{name}' on {model.__tablename__}")
    return col


def _coerce(col, value: Any) -> Any:
    """Query-string values arrive as text; convert them to the column's python type."""
    if isinstance(value, list):
        return [_coerce(col, v) for v in value]
    if not isinstance(value, str):
        return value
    if value == "null":
        return None
    try:
        py = col.type.python_type
    except NotImplementedError:
        return value
    try:
        if py is datetime:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        if py is date:
            return date.fromisoformat(value)
        if py is bool:
            return value.lower() in ("1", "true", "yes")
        if py is int:
            return int(value)
        if py is float:
            return float(value)
    except ValueError:
        raise StorageError(f"Invalid value {value!r} for field '{col.name}'")
    return value


def _predicate(model, p: Predicate):
    col = _column(model, p.field)
    op = OPERATORS.get(p.op)
    if op is None:
        raise StorageError(f"Unsupported operator '{p.op}' for field '{p.field}'")
    value = p.value if p.op in TEXT_OPERATORS else _coerce(col, p.value)
    return op(col, value)


def compile_filter(model, descriptor: FilterDescriptor) -> list:
    """WHERE clauses for ``descriptor``: every field filter AND the OR-ed search group."""
    clauses = [_predicate(model, p) for p in descriptor.where]
    if descriptor.search:
        clauses.append(or_(*[_predicate(model, p) for p in descriptor.search]))
    return [and_(*clauses)] if clauses else []


def _relationships(model, names: Iterable[str]) -> list:
    rels = model.__mapper__.relationships
    out = []
    for name in names:
        if name == COUNT_RELATION:
            continue
        if name not in rels:
            raise StorageError(f"Unknown relation '{name}' on {model.__tablename__}")
        out.append(rels[name])
    return out


def _columns(obj) -> Dict[str, Any]:
    return {attr.key: getattr(obj, attr.key) for attr in obj.__mapper__.column_attrs}


def serialize(obj, relations: Iterable[str] = (), counts: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
    """Column values plus each requested relation nested one level deep."""
    out = _columns(obj)
    for rel in _relationships(type(obj), relations):
        value = getattr(obj, rel.key)
        if rel.uselist:
            out[rel.key] = [_columns(x) for x in (value or [])]
        else:
            out[rel.key] = _columns(value) if value is not None else None
    if counts is not None:
        out[COUNT_RELATION] = counts
    return out


# ----------------------------------------------------------------------
# Store
# ----------------------------------------------------------------------
class EntityStore:
    def __init__(self, model, entity: str):
        self.model = model
        self.entity = entity

    @property
    def _pk(self):
        return self.model.__table__.c.id

    def _select(self, descriptor: FilterDescriptor):
        stmt = select(self.model).where(*compile_filter(self.model, descriptor))
        for rel in _relationships(self.model, descriptor.relations):
            stmt = stmt.options(selectinload(getattr(self.model, rel.key)))
        for spec in descriptor.order:
            col = _column(self.model, spec.id)
            stmt = stmt.order_by(col.desc() if spec.desc else col.asc())
        return stmt

    def _counts(self, db: Session, rows: List[Any]) -> Dict[Any, Dict[str, int]]:
        """``{row id: {to-many relation: size}}`` for the ``_count`` pseudo-relation."""
        ids = [r.id for r in rows]
        out: Dict[Any, Dict[str, int]] = {i: {} for i in ids}
        for rel in self.model.__mapper__.relationships:
            if not rel.uselist or not ids:
                continue
            _, remote = rel.local_remote_pairs[0]
            res = db.execute(
                select(remote, func.count())
                .where(remote.in_(ids))
                .group_by(remote)
            ).all()
            sizes = {k: n for k, n in res}
            for i in ids:
                out[i][rel.key] = sizes.get(i, 0)
        return out

    def _render(self, db: Session, rows: List[Any], descriptor: FilterDescriptor) -> List[Dict[str, Any]]:
        counts = self._counts(db, rows) if COUNT_RELATION in descriptor.relations else {}
        return [serialize(r, descriptor.relations, counts.get(r.id)) for r in rows]

    def _failed(self, db: Session, action: str, e: SQLAlchemyError):
        db.rollback()
        logger.error("[%s] %s failed: %s", self.entity, action, e)
        return StorageError(f"Could not {action} {self.entity}")

    def find_many(self, db: Session, descriptor: FilterDescriptor) -> Page:
        stmt = self._select(descriptor)
        if descriptor.offset:
            stmt = stmt.offset(descriptor.offset)
        if descriptor.limit is not None:
            stmt = stmt.limit(descriptor.limit)
        count_stmt = (
            select(func.count())
            .select_from(self.model)
            .where(*compile_filter(self.model, descriptor.without_paging()))
        )
        try:
            rows = db.execute(stmt).scalars().all()
            total = db.execute(count_stmt).scalar_one()
            data = self._render(db, rows, descriptor)
        except SQLAlchemyError as e:
            raise self._failed(db, "list", e)
        return Page(data=data, total_count=total)

    def find_first(self, db: Session, descriptor: FilterDescriptor) -> Optional[Dict[str, Any]]:
        try:
            row = db.execute(self._select(descriptor).limit(1)).scalars().first()
            if row is None:
                return None
            return self._render(db, [row], descriptor)[0]
        except SQLAlchemyError as e:
            raise self._failed(db, "read", e)

    def _integrity(self, db: Session, e: IntegrityError, referencing: bool):
        db.rollback()
        msg = str(e.orig).lower()
        logger.warning("[%s] IntegrityError: %s", self.entity, e.orig)
        is_fk = getattr(e.orig, "sqlstate", None) == "23503" or "foreign key" in msg
        if referencing and is_fk:
            return NotFound("Referenced record does not exist")
        return Conflict(f"{self.entity} violates a storage constraint")

    def create(self, db: Session, values: Dict[str, Any]) -> Dict[str, Any]:
        try:
            new_id = db.execute(
                insert(self.model).values(**values).returning(self._pk)
            ).scalar_one()
            db.commit()
        except IntegrityError as e:
            raise self._integrity(db, e, referencing=True)
        except SQLAlchemyError as e:
            raise self._failed(db, "create", e)
        return serialize(db.get(self.model, new_id))

    def update(self, db: Session, record_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        values = {**values, "updated_at": datetime.now(timezone.utc)}
        try:
            res = db.execute(update(self.model).where(self._pk == record_id).values(**values))
            if res.rowcount == 0:
                db.rollback()
                raise NotFound(f"{self.entity} not found")
            db.commit()
        except IntegrityError as e:
            raise self._integrity(db, e, referencing=True)
        except SQLAlchemyError as e:
            raise self._failed(db, "update", e)
        return serialize(db.get(self.model, record_id, populate_existing=True))

    def delete(self, db: Session, record_id: str) -> Dict[str, Any]:
        """Deletes the row and returns its state before deletion, in one statement."""
        try:
            row = db.execute(
                delete(self.model)
                .where(self._pk == record_id)
                .returning(*self.model.__table__.c)
            ).first()
            if row is None:
                db.rollback()
                raise NotFound(f"{self.entity} not found")
            db.commit()
        except IntegrityError as e:
            raise self._integrity(db, e, referencing=False)
        except SQLAlchemyError as e:
            raise self._failed(db, "delete", e)
        return row._asdict()
