"""DynamoDB configuration properties and client wiring."""
__all__ = [
    "DEFAULT_MAX_ERROR_RETRIES",
    "MAX_TIMEOUT",
    "ClientTimeoutPolicy",
    "TableDefinition",
    "TableTtlRegistry",
    "TimeToLive",
    "client_config",
    "create_client",
]

from kinesis_consumer.dynamodb.client import client_config, create_client
from kinesis_consumer.dynamodb.properties import (
    DEFAULT_MAX_ERROR_RETRIES,
    MAX_TIMEOUT,
    ClientTimeoutPolicy,
    TableDefinition,
    TableTtlRegistry,
    TimeToLive,
)
