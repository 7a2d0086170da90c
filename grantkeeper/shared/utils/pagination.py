# grantkeeper/shared/utils/pagination.py

from fastapi import Query
from fastapi_pagination import LimitOffsetParams

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def limit_offset_params(
        limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Maximum number of items"),
        offset: int = Query(0, ge=0, description="Number of items to skip"),
) -> LimitOffsetParams:
    return LimitOffsetParams(limit=limit, offset=offset)
