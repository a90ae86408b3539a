"""
Migration data models.

This module defines Pydantic models for catalog entries, ledger rows and the
version snapshots exposed to the calling shell, providing type safety and
validation for migration-related operations.
"""

from typing import Optional, List, Union, Literal, Annotated
from pydantic import BaseModel, Field, computed_field, field_validator


EMPTY_DATABASE_VERSION = -1
LEGACY_DATABASE_VERSION = 0


class Migration(BaseModel):
    """
    Catalog entry for a single schema migration.

    Immutable once published; the checksum is the SHA-256 digest of the SQL
    payload that ``content_reference`` resolves to.
    """

    version: int = Field(..., gt=0, description="Strictly increasing migration version")
    name: str = Field(..., min_length=1, description="Migration name")
    description: str = Field(default="", description="Human-readable description")
    content_reference: str = Field(..., min_length=1, description="Handle of the SQL payload")
    checksum: str = Field(..., min_length=1, description="SHA-256 hex digest of the payload")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Reject blank names."""
        if not v.strip():
            raise ValueError('Migration name cannot be blank')
        return v

    def __str__(self) -> str:
        return f"Migration {self.version:03d}: {self.name}"

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "version": 2,
                "name": "v002_gst_fixes",
                "description": "GST calculation improvements and fixes",
                "content_reference": "v002_gst_fixes.sql",
                "checksum": "5f0c...e1"
            }
        }
    }


class AppliedMigrationRecord(BaseModel):
    """Row of the ``database_migrations`` ledger."""

    id: int
    version: int
    name: str
    description: Optional[str] = None
    checksum: str
    applied_at: str = Field(..., description="UTC timestamp text, YYYY-MM-DD HH:MM:SS")
    execution_time_ms: Optional[int] = Field(None, ge=0)

    model_config = {"frozen": True}


class DatabaseVersionInfo(BaseModel):
    """
    Snapshot of the database schema version against the catalog.

    ``current_version`` is -1 for an empty database, 0 for a legacy database
    that predates the ledger and otherwise the highest applied version.
    """

    current_version: int = Field(..., ge=EMPTY_DATABASE_VERSION)
    required_version: int = Field(..., ge=0)
    pending_migrations: List[Migration] = Field(default_factory=list)
    applied_migrations: List[AppliedMigrationRecord] = Field(default_factory=list)

    @computed_field
    @property
    def is_legacy(self) -> bool:
        return self.current_version == LEGACY_DATABASE_VERSION

    @computed_field
    @property
    def needs_migration(self) -> bool:
        return self.current_version < self.required_version

    @property
    def is_empty(self) -> bool:
        return self.current_version == EMPTY_DATABASE_VERSION

    @property
    def pending_versions(self) -> List[int]:
        return [m.version for m in self.pending_migrations]

    model_config = {"frozen": True}


class CurrentStatus(BaseModel):
    """Database schema matches the catalog."""

    status: Literal['current'] = 'current'
    version: int

    model_config = {"frozen": True}


class RequiresUpgradeStatus(BaseModel):
    """Pending migrations exist."""

    status: Literal['requires_upgrade'] = 'requires_upgrade'
    current_version: int
    required_version: int
    pending_migrations: List[Migration]

    model_config = {"frozen": True}


class RequiresConsentStatus(BaseModel):
    """Pending migrations exist; carries the full version snapshot for display."""

    status: Literal['requires_consent'] = 'requires_consent'
    info: DatabaseVersionInfo

    model_config = {"frozen": True}


MigrationStatus = Annotated[
    Union[CurrentStatus, RequiresUpgradeStatus, RequiresConsentStatus],
    Field(discriminator='status')
]


def needs_upgrade(status: Union[CurrentStatus, RequiresUpgradeStatus, RequiresConsentStatus]) -> bool:
    """True for every status variant that asks for migrations to be applied."""
    return not isinstance(status, CurrentStatus)
