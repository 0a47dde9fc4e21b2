"""Browse any application table with paging and sorting.

Table and column names are only ever taken from the database catalog;
user input merely selects among them.
"""

import math
from typing import List, Optional

import structlog
from fastapi.encoders import jsonable_encoder
from sqlalchemy import column, func, inspect, select, table
from sqlalchemy.orm import Session

from adminpanel.core.exceptions import EntityNotFoundException, ValidationException
from adminpanel.domain.schemas.database import DatabaseTable, TableData

logger = structlog.get_logger(__name__)

EXCLUDED_TABLES = {"alembic_version"}
EXCLUDED_PREFIXES = ("sqlite_",)
SORT_DIRECTIONS = ("asc", "desc")
MAX_LIMIT = 500


def _table_names(db: Session) -> List[str]:
    names = inspect(db.get_bind()).get_table_names()
    return sorted(
        name for name in names
        if name not in EXCLUDED_TABLES and not name.startswith(EXCLUDED_PREFIXES)
    )


def _column_names(db: Session, table_name: str) -> List[str]:
    return [col["name"] for col in inspect(db.get_bind()).get_columns(table_name)]


def _count(db: Session, table_name: str) -> int:
    return db.execute(select(func.count()).select_from(table(table_name))).scalar() or 0


def list_tables(db: Session) -> List[DatabaseTable]:
    return [DatabaseTable(name=name, row_count=_count(db, name)) for name in _table_names(db)]


def get_table_data(
    db: Session,
    table_name: str,
    page: int = 1,
    limit: int = 100,
    sort_by: Optional[str] = None,
    sort_dir: str = "asc",
) -> TableData:
    if table_name not in _table_names(db):
        raise EntityNotFoundException("Table not found", {"table": table_name})
    if page < 1:
        raise ValidationException("Page must be at least 1", {"page": page})
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationException(f"Limit must be between 1 and {MAX_LIMIT}", {"limit": limit})

    sort_dir = (sort_dir or "asc").lower()
    if sort_dir not in SORT_DIRECTIONS:
        raise ValidationException("Invalid sort direction", {"sort_dir": sort_dir})

    columns = _column_names(db, table_name)
    if sort_by is not None and sort_by not in columns:
        raise ValidationException("Invalid sort column", {"sort_by": sort_by})

    target = table(table_name, *(column(name) for name in columns))
    query = select(target)
    if sort_by:
        sort_col = target.c[sort_by]
        query = query.order_by(sort_col.desc() if sort_dir == "desc" else sort_col.asc())
    query = query.offset((page - 1) * limit).limit(limit)

    rows = [dict(row) for row in db.execute(query).mappings()]
    total = _count(db, table_name)
    logger.debug("Table data fetched", table=table_name, page=page, rows=len(rows))

    return TableData(
        table=table_name,
        columns=columns,
        rows=jsonable_encoder(rows, custom_encoder={bytes: lambda value: value.hex()}),
        total_count=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total else 0,
    )
