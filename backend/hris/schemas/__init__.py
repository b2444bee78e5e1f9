# backend/hris/schemas/__init__.py

# Entity payload validation
from .registry import (
    FieldSpec,
    EntitySchema,
    REGISTRY,
    validate,
)

# List envelope
from .page import Page

__all__ = [
    "FieldSpec", "EntitySchema", "REGISTRY", "validate",
    "Page",
]
