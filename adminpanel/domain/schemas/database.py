"""Pydantic schemas for the database viewer."""

from typing import Any

from pydantic import BaseModel


class DatabaseTable(BaseModel):
    name: str
    row_count: int


class TableData(BaseModel):
    table: str
    columns: list[str]
    rows: list[dict[str, Any]]
    total_count: int
    page: int
    limit: int
    total_pages: int
