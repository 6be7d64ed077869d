"""
Validated settings for a single export run.

Built from a Flask config mapping (or any dict with the same keys) so the
CLI, the scheduler and tests share one validation path. Field aliases are
the environment variable names used by sqlexport.config.
"""

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from .errors import ConfigurationError


REQUIRED_KEYS = (
    'AZURE_SUBSCRIPTION_ID',
    'RESOURCE_GROUP_NAME',
    'DATABASE_SERVER_NAME',
    'DATABASE_NAME',
    'DATABASE_ADMIN_USERNAME',
    'DATABASE_ADMIN_PASSWORD',
    'STORAGE_ACCOUNT_NAME',
    'BLOB_CONTAINER_NAME',
)


class ExportSettings(BaseModel):
    """Everything one export run needs. Secrets are held as SecretStr."""

    model_config = ConfigDict(frozen=True)

    # Target database
    subscription_id: str = Field(validation_alias='AZURE_SUBSCRIPTION_ID')
    resource_group: str = Field(validation_alias='RESOURCE_GROUP_NAME')
    server_name: str = Field(validation_alias='DATABASE_SERVER_NAME')
    database_name: str = Field(validation_alias='DATABASE_NAME')
    admin_username: str = Field(validation_alias='DATABASE_ADMIN_USERNAME')
    admin_password: SecretStr = Field(validation_alias='DATABASE_ADMIN_PASSWORD')

    # Storage
    storage_account_name: str = Field(validation_alias='STORAGE_ACCOUNT_NAME')
    container_name: str = Field(validation_alias='BLOB_CONTAINER_NAME')
    storage_key: Optional[SecretStr] = Field(default=None, validation_alias='STORAGE_KEY')
    storage_resource_group: Optional[str] = Field(default=None, validation_alias='STORAGE_RESOURCE_GROUP_NAME')

    # Identity
    client_id: Optional[str] = Field(default=None, validation_alias='AZURE_CLIENT_ID')

    # Run behaviour
    retention_days: int = Field(default=0, validation_alias='RETENTION_DAYS')
    ensure_container: bool = Field(default=True, validation_alias='ENSURE_CONTAINER')
    poll_interval: int = Field(default=15, validation_alias='EXPORT_POLL_INTERVAL')
    fail_on_export_failure: bool = Field(default=False, validation_alias='FAIL_ON_EXPORT_FAILURE')

    @field_validator('poll_interval')
    @classmethod
    def _poll_interval_must_be_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"must be positive, got {value}")
        return value

    @property
    def secrets(self) -> List[str]:
        """Plain-text secret values, for registration with the log redactor."""
        return [s.get_secret_value() for s in (self.admin_password, self.storage_key) if s]

    @classmethod
    def from_config(cls, mapping: Mapping[str, Any], **overrides) -> 'ExportSettings':
        """
        Build settings from a config mapping.

        Unset and empty values fall back to field defaults, so an empty
        required key is reported as missing.

        Args:
            mapping: Flask app.config or a plain dict using the env var names
            **overrides: Field values that take precedence (e.g. from CLI options)

        Returns:
            ExportSettings instance

        Raises:
            ConfigurationError: If required keys are missing or values are invalid
        """
        data = {key: value for key, value in mapping.items() if value is not None and value != ''}
        data.setdefault('STORAGE_RESOURCE_GROUP_NAME', data.get('RESOURCE_GROUP_NAME'))

        for name, value in overrides.items():
            if value is not None:
                data[cls.model_fields[name].validation_alias] = value

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            problems = [
                f"{'.'.join(str(part) for part in error['loc'])} ({error['msg']})"
                for error in e.errors()
            ]
            raise ConfigurationError(f"Invalid settings: {'; '.join(problems)}") from e
