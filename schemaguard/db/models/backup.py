"""
Backup data models.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class BackupRecord(BaseModel):
    """
    Point-in-time file copy of the database.

    Created by the backup manager, never mutated, deleted only by an
    explicit cleanup.
    """

    file_name: str = Field(..., description="Backup file name")
    path: str = Field(..., description="Absolute path of the backup file")
    size_bytes: int = Field(..., ge=0, description="File size in bytes")
    created_at: Optional[datetime] = Field(None, description="UTC creation time from file metadata")

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "file_name": "pre_migration_startup_20250628_174253.duckdb",
                "path": "/srv/app/data/backups/pre_migration_startup_20250628_174253.duckdb",
                "size_bytes": 1572864,
                "created_at": "2025-06-28T17:42:53+00:00"
            }
        }
    }
