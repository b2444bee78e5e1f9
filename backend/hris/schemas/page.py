# backend/hris/schemas/page.py
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Page(BaseModel):
    """One page of records plus the size of the whole matching set."""

    data: List[Dict[str, Any]]
    total_count: int = Field(..., ge=0, alias="totalCount")

    model_config = ConfigDict(populate_by_name=True)

    def page_count(self, page_size: int) -> int:
        if page_size <= 0:
            return 0
        return -(-self.total_count // page_size)
