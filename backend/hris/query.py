# backend/hris/query.py
"""
List query translation.

A list request carries a flat bag of query parameters::

    ?limit=10&offset=0&relations=employee&searchTerm=pend
     &searchTermKeys=status.contains&order={"id":"created_at","desc":true}
     &status=pending

``parse_query_params`` reads the bag into a ``ListQuery``; ``translate``
turns that into a ``FilterDescriptor``: an AND list of field predicates,
an OR group built from the search term, and the order / relation / paging
directives. Field names are plain strings and are not checked here; the
storage layer resolves them against the model.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from hris.errors import ValidationFailed

DEFAULT_OP = "equals"

# query parameters with a meaning of their own; everything else is a filter
RESERVED = frozenset({"limit", "offset", "order", "relations", "searchTerm", "searchTermKeys"})


class OrderSpec(BaseModel):
    id: str
    desc: bool = False


class ListQuery(BaseModel):
    limit: Optional[int] = Field(None, ge=0)
    offset: Optional[int] = Field(None, ge=0)
    order: List[OrderSpec] = Field(default_factory=list)
    relations: List[str] = Field(default_factory=list)
    search_term: Optional[str] = None
    search_term_keys: List[str] = Field(default_factory=list)
    filters: Dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class Predicate:
    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class FilterDescriptor:
    where: Tuple[Predicate, ...] = ()
    search: Tuple[Predicate, ...] = ()
    order: Tuple[OrderSpec, ...] = ()
    relations: Tuple[str, ...] = ()
    limit: Optional[int] = None
    offset: Optional[int] = None

    def without_paging(self) -> "FilterDescriptor":
        return FilterDescriptor(where=self.where, search=self.search)


def split_expression(expr: str) -> Tuple[str, str]:
    """``"status.contains"`` -> ``("status", "contains")``; bare names compare for equality."""
    name, sep, op = expr.rpartition(".")
    if not sep:
        return expr, DEFAULT_OP
    return name, op


# ----------------------------------------------------------------------
# Query string -> ListQuery
# ----------------------------------------------------------------------
def _multi(params: Mapping[str, Any], key: str, split: bool = True) -> List[str]:
    """All values of ``key`` and ``key[]``; with ``split``, comma separated values too."""
    out: List[str] = []
    for k in (key, f"{key}[]"):
        if hasattr(params, "getlist"):
            raw = params.getlist(k)
        else:
            raw = params.get(k)
            raw = [] if raw is None else (raw if isinstance(raw, list) else [raw])
        for v in raw:
            if split and isinstance(v, str) and not v.lstrip().startswith("{"):
                out.extend(p.strip() for p in v.split(",") if p.strip())
            elif v not in (None, ""):
                out.append(v)
    return out


def _int_param(params: Mapping[str, Any], key: str) -> Optional[int]:
    raw = params.get(key)
    if raw in (None, ""):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationFailed([{"field": key, "reason": "invalid_format"}])
    if value < 0:
        raise ValidationFailed([{"field": key, "reason": "invalid_format"}])
    return value


def _order_entry(raw: Any) -> OrderSpec:
    if isinstance(raw, dict):
        return OrderSpec.model_validate(raw)
    text = str(raw).strip()
    if text.startswith("{"):
        try:
            return OrderSpec.model_validate(json.loads(text))
        except ValueError:
            raise ValidationFailed([{"field": "order", "reason": "invalid_format"}])
    if text.startswith("-"):
        return OrderSpec(id=text[1:], desc=True)
    name, _, direction = text.partition(":")
    return OrderSpec(id=name, desc=direction.lower() == "desc")


def parse_query_params(params: Mapping[str, Any]) -> ListQuery:
    """Read a request's query parameters (starlette ``QueryParams`` or a plain dict)."""
    filters: Dict[str, Any] = {}
    for key in params.keys():
        base = key[:-2] if key.endswith("[]") else key
        if base in RESERVED:
            continue
        values = _multi(params, base, split=False)
        if not values:
            continue
        filters[base] = values if len(values) > 1 or key.endswith("[]") else values[0]

    search_term = params.get("searchTerm")
    return ListQuery(
        limit=_int_param(params, "limit"),
        offset=_int_param(params, "offset"),
        order=[_order_entry(v) for v in _multi(params, "order")],
        relations=_multi(params, "relations"),
        search_term=search_term if isinstance(search_term, str) else None,
        search_term_keys=_multi(params, "searchTermKeys"),
        filters=filters,
    )


# ----------------------------------------------------------------------
# ListQuery -> FilterDescriptor
# ----------------------------------------------------------------------
def _dedup(items: Iterable[str]) -> Tuple[str, ...]:
    seen, out = set(), []
    for x in items:
        if x not in seen:
            seen.add(x)
            out.append(x)
    return tuple(out)


def translate(query: ListQuery, extra: Optional[Mapping[str, Any]] = None) -> FilterDescriptor:
    """
    Build the filter descriptor for ``query``.

    ``extra`` adds filter pairs the caller fixes regardless of the query
    string (the record id of a get-by-id request, for example).
    """
    where: List[Predicate] = []
    for expr, value in {**query.filters, **(extra or {})}.items():
        name, op = split_expression(expr)
        if isinstance(value, list) and op == DEFAULT_OP:
            op = "in"
        where.append(Predicate(name, op, value))

    search: List[Predicate] = []
    term = (query.search_term or "").strip()
    if term:
        for expr in _dedup(query.search_term_keys):
            name, op = split_expression(expr)
            search.append(Predicate(name, op, term))

    return FilterDescriptor(
        where=tuple(where),
        search=tuple(search),
        order=tuple(query.order),
        relations=_dedup(query.relations),
        limit=query.limit,
        offset=query.offset,
    )
