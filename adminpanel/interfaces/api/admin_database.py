"""Read-only database browser."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from adminpanel.application.services.database_viewer import get_table_data, list_tables
from adminpanel.domain.models.user import User
from adminpanel.domain.schemas.database import DatabaseTable, TableData
from adminpanel.infrastructure.database import get_db
from adminpanel.interfaces.api.deps import require_admin

router = APIRouter(prefix="/api/admin/database", tags=["Admin Database"])


@router.get("/tables", response_model=List[DatabaseTable])
def get_tables(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return list_tables(db)


@router.get("/tables/{table_name}", response_model=TableData)
def get_table(
    table_name: str,
    page: int = 1,
    limit: int = 100,
    sort_by: Optional[str] = None,
    sort_dir: str = "asc",
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return get_table_data(db, table_name, page=page, limit=limit, sort_by=sort_by, sort_dir=sort_dir)
