"""DynamoDB client construction from `TableTtlRegistry`."""
import logging
import os
from typing import Any

import boto3
from botocore.config import Config

from kinesis_consumer.dynamodb.properties import ClientTimeoutPolicy, TableTtlRegistry

logger = logging.getLogger(__name__)

ROLE_ARN_ENV_VAR = "AWS_ROLE_ARN"


def _seconds(millis: int) -> float | None:
    # botocore reads None as "wait forever", zero would make sockets non-blocking
    if millis == 0:
        return None
    return millis / 1000


def client_config(policy: ClientTimeoutPolicy) -> Config:
    """
    Translates the timeout policy into a botocore `Config`.

    Retries are left to botocore's DynamoDB defaults (legacy mode, 10 retries)
    unless `max_error_retries` is set, in which case the same retry mode is kept
    with the custom attempt count.
    """
    millis = policy.to_millis()
    options: dict[str, Any] = {
        "connect_timeout": _seconds(millis["connection_timeout"]),
        "read_timeout": _seconds(millis["socket_timeout"]),
    }
    if policy.uses_custom_retry_policy():
        options["retries"] = {
            "max_attempts": policy.effective_max_error_retries(),
            "mode": "legacy",
        }

    for name in ("execution_timeout", "request_timeout"):
        if millis[name]:
            logger.warning(
                "DynamoDB client %s of %sms is not enforced by botocore",
                name,
                millis[name],
            )
    return Config(**options)


def _masked_access_key(access_key: str | None) -> str:
    if access_key is None:
        return "none"
    if len(access_key) < 10:
        return "too short"
    return access_key[:5] + "..."


def log_credentials(session: boto3.Session) -> None:
    """Logs which credentials a session resolved, for diagnosing access problems."""
    credentials = session.get_credentials()
    method = credentials.method if credentials is not None else "none"
    access_key = credentials.access_key if credentials is not None else None
    logger.info(
        "AWS Credentials: provider [%s], access key [%s], role [%s]",
        method,
        _masked_access_key(access_key),
        os.environ.get(ROLE_ARN_ENV_VAR, "none"),
    )


def create_client(session: boto3.Session, registry: TableTtlRegistry) -> Any:
    client = session.client(
        "dynamodb",
        endpoint_url=registry.endpoint,
        region_name=registry.region,
        config=client_config(registry.client),
    )
    log_credentials(session)
    logger.info("Connecting to DynamoDB with %r", registry)
    return client
