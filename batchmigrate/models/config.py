"""Pydantic models for migration configuration files."""

import json
import os
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..exceptions import ConfigurationError
from .migration import (
    DEFAULT_BATCH_SIZE,
    DatabaseEndpoint,
    FileEndpoint,
    FileFormat,
    MigrationDescriptor,
)

SOURCE_PASSWORD_ENV = "BATCHMIGRATE_SOURCE_PASSWORD"
TARGET_PASSWORD_ENV = "BATCHMIGRATE_TARGET_PASSWORD"


class FileConfig(BaseModel):
    type: FileFormat
    path: str
    separator: Optional[str] = None
    encoding: str = "utf-8"
    columns: List[str] = Field(default_factory=list)
    root_tag: str = "records"
    record_tag: str = "record"

    @field_validator("type", mode="before")
    @classmethod
    def lower_type(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def check_separator(self) -> "FileConfig":
        if not self.path:
            raise ValueError("Please provide a valid file path")
        if self.type == FileFormat.CSV:
            if not self.separator:
                raise ValueError("Please provide a separator for csv file (',' OR ';')")
            if len(self.separator) != 1:
                raise ValueError(f"Separator must be a single character, got {self.separator!r}")
        return self

    def to_endpoint(self) -> FileEndpoint:
        return FileEndpoint(
            path=self.path,
            format=self.type,
            delimiter=self.separator or ",",
            encoding=self.encoding,
            columns=tuple(self.columns),
            root_tag=self.root_tag,
            record_tag=self.record_tag,
        )


class DatabaseConfig(BaseModel):
    type: str = "pgsql"
    url: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    host: Optional[str] = None
    port: Optional[Union[int, str]] = None
    database: Optional[str] = None
    table: Optional[str] = None
    sql: Optional[str] = None

    @model_validator(mode="after")
    def check_credentials(self) -> "DatabaseConfig":
        if self.url:
            return self
        if self.type.lower() == "sqlite":
            if not self.database:
                raise ValueError("Please provide the sqlite database path")
            return self
        for name in ("user", "host", "port", "database", "password"):
            if getattr(self, name) in (None, ""):
                raise ValueError(f"Please provide database {name}")
        if not str(self.port).isdigit():
            raise ValueError(f"Database port must be a number, got {self.port!r}")
        return self


class EndpointConfig(BaseModel):
    file: Optional[FileConfig] = None
    db: Optional[DatabaseConfig] = None

    @model_validator(mode="after")
    def check_exactly_one(self) -> "EndpointConfig":
        if (self.file is None) == (self.db is None):
            raise ValueError("Use either file OR db")
        return self


class SourceConfig(EndpointConfig):
    @model_validator(mode="after")
    def check_table_or_sql(self) -> "SourceConfig":
        if self.db is not None and bool(self.db.table) == bool(self.db.sql):
            raise ValueError("For database, either provide db.table OR db.sql")
        return self


class TargetConfig(EndpointConfig):
    @model_validator(mode="after")
    def check_table(self) -> "TargetConfig":
        if self.db is not None:
            if not self.db.table:
                raise ValueError("Please provide target table")
            if self.db.sql:
                raise ValueError("A database target takes db.table, not db.sql")
        return self


class MigrationConfig(BaseModel):
    """Top-level migration configuration."""
    name: str = ""
    source: SourceConfig
    target: TargetConfig
    batch_size: int = Field(DEFAULT_BATCH_SIZE, ge=1)
    continue_on_error: bool = False
    max_errors: int = Field(10, ge=1)

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        environ: Optional[Mapping[str, str]] = None
    ) -> "MigrationConfig":
        """
        Create a validated configuration from a dictionary.

        Missing database passwords are filled from the environment.

        Raises:
            ConfigurationError: If fields are missing or conflict
        """
        environ = os.environ if environ is None else environ
        data = json.loads(json.dumps(data))  # Detached copy
        _fill_password(data.get("source"), environ.get(SOURCE_PASSWORD_ENV))
        _fill_password(data.get("target"), environ.get(TARGET_PASSWORD_ENV))

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(_format_validation_error(e)) from e

    @classmethod
    def from_json_file(cls, path: str) -> "MigrationConfig":
        """Load and validate a JSON configuration file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a JSON object")
        return cls.from_dict(data)

    def with_overrides(self, **overrides: Any) -> "MigrationConfig":
        """Apply command-line overrides, ignoring None values."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if not values:
            return self
        try:
            return self.model_validate({**self.model_dump(), **values})
        except ValidationError as e:
            raise ConfigurationError(_format_validation_error(e)) from e

    def to_descriptor(self) -> MigrationDescriptor:
        """Resolve the immutable descriptor for the engine."""
        from ..services.connections import build_url

        if self.source.file is not None:
            source = self.source.file.to_endpoint()
        else:
            db = self.source.db
            source = DatabaseEndpoint(url=build_url(db), table=db.table, sql=db.sql)

        if self.target.file is not None:
            target = self.target.file.to_endpoint()
        else:
            db = self.target.db
            target = DatabaseEndpoint(url=build_url(db), table=db.table)

        return MigrationDescriptor(
            source=source,
            target=target,
            batch_size=self.batch_size,
            continue_on_error=self.continue_on_error,
            max_errors=self.max_errors,
            name=self.name,
        )


def _fill_password(endpoint: Any, password: Optional[str]) -> None:
    if not password or not isinstance(endpoint, dict):
        return
    db = endpoint.get("db")
    if isinstance(db, dict) and not db.get("password"):
        db["password"] = password


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)
