"""
Migration trigger models.

Triggers are the external events that make the application re-check its
schema version. Each variant carries its own payload and names the label
used for the pre-migration backup it causes.
"""

from typing import Optional, List, Union, Literal, Annotated
from pydantic import BaseModel, Field, computed_field

from .migration import Migration, MigrationStatus, CurrentStatus


class AppStartup(BaseModel):
    """Application launched."""

    kind: Literal['app_startup'] = 'app_startup'

    @property
    def backup_label(self) -> str:
        return 'pre_migration_startup'

    model_config = {"frozen": True}


class DatabaseRestore(BaseModel):
    """A backup was restored over the live database."""

    kind: Literal['database_restore'] = 'database_restore'
    backup_path: str = Field(..., min_length=1)

    @property
    def backup_label(self) -> str:
        return 'pre_migration_restore'

    model_config = {"frozen": True}


class DatabaseImport(BaseModel):
    """An external database file was imported over the live database."""

    kind: Literal['database_import'] = 'database_import'
    import_path: str = Field(..., min_length=1)

    @property
    def backup_label(self) -> str:
        return 'pre_migration_import'

    model_config = {"frozen": True}


class ManualRequest(BaseModel):
    """Operator asked for a migration check."""

    kind: Literal['manual_request'] = 'manual_request'

    @property
    def backup_label(self) -> str:
        return 'pre_migration_manual'

    model_config = {"frozen": True}


MigrationTrigger = Annotated[
    Union[AppStartup, DatabaseRestore, DatabaseImport, ManualRequest],
    Field(discriminator='kind')
]


class MigrationCheckResult(BaseModel):
    """Outcome of the detection phase for one trigger. Nothing has been applied."""

    trigger: MigrationTrigger
    status: MigrationStatus
    backup_created: Optional[str] = Field(None, description="Path of the pre-migration backup")
    safety_backup: Optional[str] = Field(None, description="Path of the restore/import safety backup")
    integrity_warnings: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def requires_consent(self) -> bool:
        return not isinstance(self.status, CurrentStatus)

    model_config = {"frozen": True}


class MigrationApplyResult(BaseModel):
    """Outcome of the consent phase."""

    consented: bool
    applied: List[Migration] = Field(default_factory=list)
    backup_path: Optional[str] = None
    current_version: Optional[int] = None

    model_config = {"frozen": True}
