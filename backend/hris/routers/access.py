# backend/hris/routers/access.py
from fastapi import APIRouter, Depends

from hris.auth import AccessChecker, Subject, allowed_operations, get_access_checker, get_subject
from hris.routes import route_to_entity

router = APIRouter(prefix="/api/access", tags=["access"])


@router.get("/{route}")
def get_access_info(
    route: str,
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    """Operations the caller may perform on the entity behind ``route``."""
    entity = route_to_entity(route)
    return {
        "entity": entity,
        "roles": list(subject.roles),
        "operations": allowed_operations(checker, subject, entity),
    }
