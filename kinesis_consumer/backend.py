from collections.abc import Callable
from functools import wraps
from typing import Any, NoReturn, TypeVar, cast

import boto3
from typing_extensions import Self

from kinesis_consumer.credentials import StreamClients, stream_clients
from kinesis_consumer.dynamodb import TableTtlRegistry, create_client
from kinesis_consumer.exceptions import NoProviderConfigured
from kinesis_consumer.kinesis import KinesisSubscription
from kinesis_consumer.settings import Environment, Settings

T = TypeVar("T")

_Provider = Callable[["_Container"], T]


def singleton(provider: _Provider[T]) -> _Provider[T]:
    result: T | None = None

    @wraps(provider)
    def _wrapper(container: "_Container") -> T:
        nonlocal result
        if result is not None:
            return result
        result = provider(container)
        return result

    return _wrapper


def not_configured(error_message: str) -> _Provider[T]:
    def _raise(container: "_Container") -> NoReturn:
        raise NoProviderConfigured(error_message)

    return _raise


class _Container:
    def __init__(self) -> None:
        self.providers: dict[type, _Provider] = {}

    def __getitem__(self, _type: type[T]) -> T:
        return cast(_Provider[T], self.providers[_type])(self)

    def __setitem__(self, _type: type[T], value: T | _Provider[T]) -> None:
        self.providers[_type] = (
            cast(_Provider[T], lambda _: value)
            if isinstance(value, _type)
            else cast(_Provider[T], value)
        )


class Backend(_Container):
    """
    Wires the AWS clients of the consumer from validated `Settings`.

    Clients are created on first use and shared afterwards.
    """

    UNCONFIGURED_MESSAGE = "Configure backend with `.configure(settings)`"

    def __init__(self) -> None:
        super().__init__()
        self[Settings] = not_configured(self.UNCONFIGURED_MESSAGE)
        self[TableTtlRegistry] = lambda c: c[Settings].amazon.dynamodb
        self[Environment] = lambda c: c[Settings].environment
        self[boto3.Session] = singleton(lambda _: boto3.Session())
        self[StreamClients] = singleton(
            lambda c: stream_clients(c[Settings], c[boto3.Session]),
        )
        self._clients: dict[str, Any] = {}

    def configure(self, settings: Settings) -> Self:
        """
        Sets the settings every client is built from.

        Args:
            settings: Validated settings, see `load_settings`.

        Returns:
            The configured backend instance (for chaining).
        """
        self[Settings] = settings
        return self

    @property
    def settings(self) -> Settings:
        return self[Settings]

    @property
    def tables(self) -> TableTtlRegistry:
        return self[TableTtlRegistry]

    @property
    def environment(self) -> Environment:
        return self[Environment]

    @property
    def dynamodb(self) -> Any:
        return self._client(
            "dynamodb",
            lambda: create_client(self[boto3.Session], self.tables),
        )

    @property
    def kinesis(self) -> Any:
        return self._client("kinesis", lambda: self[StreamClients]("kinesis"))

    @property
    def cloudwatch(self) -> Any:
        return self._client("cloudwatch", lambda: self[StreamClients]("cloudwatch"))

    @property
    def subscription(self) -> KinesisSubscription:
        consumer = self.settings.consumer
        return KinesisSubscription(
            self.kinesis,
            consumer.stream,
            batch_size=consumer.batch_size,
            timelimit=consumer.batch_timelimit,
            iterator_type=consumer.iterator_type,
        )

    def _client(self, service_name: str, create: Callable[[], Any]) -> Any:
        if service_name not in self._clients:
            self._clients[service_name] = create()
        return self._clients[service_name]

