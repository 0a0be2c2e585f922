"""
Application settings.

Values come from, in order of precedence: keyword arguments, environment variables
prefixed with `KINESIS_CONSUMER_` (nested keys joined with `__`), and a YAML file
(`application.yml` unless `KINESIS_CONSUMER_CONFIG_FILE` or `config_file` says
otherwise). YAML keys may be written in camelCase; they are renamed to the
snake_case field names before the sources are merged so environment variables
override them.
"""
import os
import socket
from collections.abc import Mapping
from datetime import timedelta
from enum import Enum
from inspect import isclass
from pathlib import Path
from typing import Any, Final, Literal, get_args, get_origin

from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)
from typing_extensions import Self

from kinesis_consumer._duration import Duration
from kinesis_consumer.dynamodb.properties import (
    NonBlankStr,
    Properties,
    TableTtlRegistry,
)
from kinesis_consumer.exceptions import ConfigurationError, describe
from kinesis_consumer.kinesis import MAX_RECORDS_PER_REQUEST

DEFAULT_CONFIG_FILE: Final[str] = "application.yml"
CONFIG_FILE_ENV_VAR: Final[str] = "KINESIS_CONSUMER_CONFIG_FILE"


def _by_field_name(annotation: Any, data: Any) -> Any:
    """Renames the camelCase keys of `data` to the field names of `annotation`."""
    if get_origin(annotation) in (dict, Mapping):
        if not isinstance(data, dict):
            return data
        value_type = get_args(annotation)[1]
        return {key: _by_field_name(value_type, value) for key, value in data.items()}

    if not isinstance(data, dict) or not (
        isclass(annotation) and issubclass(annotation, BaseModel)
    ):
        return data

    fields = annotation.model_fields
    names = {field.alias or name: name for name, field in fields.items()}
    renamed: dict[str, Any] = {}
    for key, value in data.items():
        name = names.get(key, key)
        field = fields.get(name)
        if field is not None:
            value = _by_field_name(field.annotation, value)
        renamed[name] = value
    return renamed


class YamlSettingsSource(YamlConfigSettingsSource):
    def __call__(self) -> dict[str, Any]:
        return _by_field_name(self.settings_cls, super().__call__())


class Environment(Enum):
    LOCAL = "local"
    CLOUD = "cloud"


class Localstack(Properties):
    enabled: bool = False
    host: str = "localhost"
    port: int = Field(default=4566, gt=0, lt=65536)
    region: str = "us-west-2"

    @property
    def endpoint_url(self) -> str:
        return f"http://{self.host}:{self.port}"


class Aws(Properties):
    """
    Attributes:
        arn (str | None): Cross-account role assumed for stream access in the cloud.
        region (str): Region of the stream clients in the cloud.
        localstack (Localstack): Local endpoint used instead of AWS when enabled.
    """

    arn: str | None = None
    region: str = "us-west-2"
    localstack: Localstack = Field(default_factory=Localstack)


class Cloud(Properties):
    aws: Aws = Field(default_factory=Aws)


class Meta(Properties):
    hostname: NonBlankStr = Field(default_factory=socket.gethostname)


class App(Properties):
    meta: Meta = Field(default_factory=Meta)


class Amazon(Properties):
    dynamodb: TableTtlRegistry


class Consumer(Properties):
    stream: NonBlankStr
    batch_size: int = Field(default=100, gt=0, le=MAX_RECORDS_PER_REQUEST)
    batch_timelimit: Duration = timedelta(seconds=1)
    iterator_type: Literal["LATEST", "TRIM_HORIZON"] = "LATEST"


class Logging(Properties):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KINESIS_CONSUMER_",
        env_nested_delimiter="__",
        yaml_file=DEFAULT_CONFIG_FILE,
        extra="forbid",
        frozen=True,
    )

    cloud: Cloud = Field(default_factory=Cloud)
    app: App = Field(default_factory=App)
    amazon: Amazon
    consumer: Consumer
    logging: Logging = Field(default_factory=Logging)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, YamlSettingsSource(settings_cls)

    @model_validator(mode="after")
    def _cloud_requires_role(self) -> Self:
        if self.environment is Environment.CLOUD and not self.cloud.aws.arn:
            raise ValueError(
                "cloud.aws.arn is required when cloud.aws.localstack.enabled is false"
            )
        return self

    @property
    def environment(self) -> Environment:
        if self.cloud.aws.localstack.enabled:
            return Environment.LOCAL
        return Environment.CLOUD


def load_settings(config_file: str | Path | None = None, **overrides: Any) -> Settings:
    """
    Loads and validates the settings once, at startup.

    Raises:
        ConfigurationError: any value is missing or violates its constraints.
    """
    yaml_file = config_file or os.environ.get(CONFIG_FILE_ENV_VAR, DEFAULT_CONFIG_FILE)

    class FileSettings(Settings):
        model_config = SettingsConfigDict(yaml_file=yaml_file)

    try:
        return FileSettings(**_by_field_name(Settings, overrides))
    except ValidationError as error:
        raise ConfigurationError(describe("application", error)) from error
