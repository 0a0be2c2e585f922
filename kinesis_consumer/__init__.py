__all__ = [
    "Backend",
    "ClientTimeoutPolicy",
    "ConfigurationError",
    "ConfigurationNotFoundError",
    "ConfigurationStateError",
    "Environment",
    "KinesisMessage",
    "KinesisSubscription",
    "Settings",
    "TableDefinition",
    "TableTtlRegistry",
    "TimeToLive",
    "consume",
    "load_settings",
    "log_payload",
]

from kinesis_consumer.backend import Backend
from kinesis_consumer.consumer import consume, log_payload
from kinesis_consumer.dynamodb import (
    ClientTimeoutPolicy,
    TableDefinition,
    TableTtlRegistry,
    TimeToLive,
)
from kinesis_consumer.exceptions import (
    ConfigurationError,
    ConfigurationNotFoundError,
    ConfigurationStateError,
)
from kinesis_consumer.kinesis import KinesisMessage, KinesisSubscription
from kinesis_consumer.settings import Environment, Settings, load_settings
