# backend/hris/routes.py
from types import MappingProxyType

# URL segment -> entity kind
ROUTE_TO_ENTITY = MappingProxyType({
    "companies": "company",
    "employees": "employee",
    "users": "user",
    "vacation-requests": "vacation_request",
})


def route_to_entity(route: str) -> str:
    """Entity kind for a URL segment; unmapped segments pass through unchanged."""
    return ROUTE_TO_ENTITY.get(route, route)
