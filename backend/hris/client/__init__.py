from .api import AccessSnapshot, ApiClient, ApiRequestError, EntityApi, encode_query
from .list_page import (
    Column,
    DataTableParams,
    ListPageController,
    employee_list_page,
    vacation_request_list_page,
)

__all__ = [
    "AccessSnapshot", "ApiClient", "ApiRequestError", "EntityApi", "encode_query",
    "Column", "DataTableParams", "ListPageController",
    "employee_list_page", "vacation_request_list_page",
]
