"""Configuration properties for the DynamoDB client and its tables."""
from collections.abc import Mapping
from datetime import timedelta
from types import MappingProxyType
from typing import Annotated, Any, Final, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from typing_extensions import Self

from kinesis_consumer._duration import ZERO, Duration, to_millis
from kinesis_consumer.exceptions import (
    ConfigurationError,
    ConfigurationNotFoundError,
    ConfigurationStateError,
    describe,
)

MAX_TIMEOUT_MILLIS: Final[int] = 2**31 - 1
MAX_TIMEOUT: Final[timedelta] = timedelta(milliseconds=MAX_TIMEOUT_MILLIS)

# Retry count the AWS SDKs use for DynamoDB when no custom policy is configured.
DEFAULT_MAX_ERROR_RETRIES: Final[int] = 10


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]

V = TypeVar("V")


def _read_only(value: Mapping[str, V]) -> Mapping[str, V]:
    return MappingProxyType(dict(value))


ReadOnlyMapping = Annotated[Mapping[str, V], AfterValidator(_read_only)]


class Properties(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @classmethod
    def build(cls, raw: Mapping[str, Any] | None = None, /, **fields: Any) -> Self:
        try:
            return cls.model_validate({**(raw or {}), **fields})
        except ValidationError as error:
            raise ConfigurationError(describe(cls.__name__, error)) from error


class ClientTimeoutPolicy(Properties):
    """
    Timeout and retry settings of the DynamoDB client.

    Every timeout is capped at `MAX_TIMEOUT_MILLIS` milliseconds because clients
    consume it as a signed 32-bit millisecond count. A zero timeout disables it.

    The timeouts are related:
        execution time = retries * (connection timeout + socket timeout)
        request time = connection timeout + socket timeout

    Attributes:
        connection_timeout (Duration): Time to wait when establishing a connection.
            Defaults to 10 seconds.
        execution_timeout (Duration): Total time spent on a request across all
            retries. Disabled by default.
        request_timeout (Duration): Time spent on a single HTTP request (one retry).
            Disabled by default.
        socket_timeout (Duration): Time to wait for data on an open connection.
            Defaults to 50 seconds.
        max_error_retries (PositiveInt | None): Retry attempts for failed requests.
            When not set, the default retry policy is kept.
    """

    connection_timeout: Duration = timedelta(seconds=10)
    execution_timeout: Duration = ZERO
    request_timeout: Duration = ZERO
    socket_timeout: Duration = timedelta(seconds=50)
    max_error_retries: PositiveInt | None = None

    @field_validator(
        "connection_timeout",
        "execution_timeout",
        "request_timeout",
        "socket_timeout",
    )
    @classmethod
    def _fits_in_millis(cls, value: timedelta) -> timedelta:
        if value < ZERO:
            raise ValueError("must be greater than or equal to 0 seconds")
        if value > MAX_TIMEOUT:
            raise ValueError(
                f"must be less than or equal to {MAX_TIMEOUT_MILLIS} milliseconds"
            )
        return value

    def uses_custom_retry_policy(self) -> bool:
        return self.max_error_retries is not None

    def effective_max_error_retries(self) -> int:
        if self.max_error_retries is None:
            return DEFAULT_MAX_ERROR_RETRIES
        return self.max_error_retries

    def to_millis(self) -> dict[str, int]:
        return {
            "connection_timeout": to_millis(self.connection_timeout),
            "execution_timeout": to_millis(self.execution_timeout),
            "request_timeout": to_millis(self.request_timeout),
            "socket_timeout": to_millis(self.socket_timeout),
        }


class TimeToLive(Properties):
    """
    How long an item stays valid in a table before DynamoDB expires it.

    `value` defaults to zero, which disables the time to live. `min` defaults to
    zero and `max` leaves the value unbounded. Defaults are applied before the
    bounds are checked, so a positive `min` without a `value` is rejected.
    """

    value: Duration = ZERO
    min: Duration | None = None
    max: Duration | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _absent_means_disabled(cls, value: Any) -> Any:
        return ZERO if value is None else value

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        for name in ("value", "min", "max"):
            duration = getattr(self, name)
            if duration is not None and duration < ZERO:
                raise ValueError(
                    f"TimeToLive {name} must be greater than or equal to 0 days "
                    f"({name}={duration})"
                )

        lower, upper = self.bounds
        if upper is not None and lower > upper:
            raise ValueError(
                f"'min' value must be less than or equal to 'max' "
                f"(min={lower}, max={upper})"
            )
        if self.value < lower:
            raise ValueError(
                f"'value' must be greater than or equal to the 'min' "
                f"(value={self.value}, min={lower})"
            )
        if upper is not None and self.value > upper:
            raise ValueError(
                f"'value' must be less than or equal to the 'max' "
                f"(value={self.value}, max={upper})"
            )
        return self

    @property
    def bounds(self) -> tuple[timedelta, timedelta | None]:
        """Inclusive `(min, max)` range, `max` is None when unbounded."""
        return self.min or ZERO, self.max

    def is_enabled(self) -> bool:
        return self.value > ZERO


class TableDefinition(Properties):
    name: NonBlankStr
    time_to_live: ReadOnlyMapping[TimeToLive] = Field(
        default_factory=dict,
        validate_default=True,
    )

    def get_time_to_live(self, key: str) -> timedelta:
        """
        Returns the time to live configured under `key`.

        Check `is_time_to_live_enabled` first: a disabled time to live is not a
        value, it's a state the caller has to branch on.

        Raises:
            ConfigurationNotFoundError: `key` is not configured for this table.
            ConfigurationStateError: the time to live under `key` is disabled.
        """
        ttl = self.time_to_live.get(key)
        if ttl is None:
            raise ConfigurationNotFoundError(
                key,
                f"TimeToLive for [{key}] is not defined on TableDefinition {self.name}",
            )
        if not ttl.is_enabled():
            raise ConfigurationStateError(
                key,
                f"TimeToLive for [{key}] is not enabled on TableDefinition {self.name}",
            )
        return ttl.value

    def is_time_to_live_enabled(self, key: str) -> bool:
        ttl = self.time_to_live.get(key)
        return ttl is not None and ttl.is_enabled()


class TableTtlRegistry(Properties):
    """
    The `amazon.dynamodb` configuration tree.

    Tables are looked up by a logical key used in code, not by their name, since
    every environment names its tables differently.
    """

    endpoint: NonBlankStr
    region: NonBlankStr
    client: ClientTimeoutPolicy = Field(default_factory=ClientTimeoutPolicy)
    tables: ReadOnlyMapping[TableDefinition] = Field(min_length=1)

    def get_table_by_key(self, table_key: str) -> TableDefinition:
        table = self.tables.get(table_key)
        if table is None:
            raise ConfigurationNotFoundError(
                table_key,
                f"Table name with the key {table_key} not found. "
                "Verify the application configuration is correct.",
            )
        return table
