"""
Credentials for the stream clients.

Locally the clients talk to localstack with whatever the default credential chain
(usually a profile) provides. In the cloud the pod's web identity role, picked up
by boto3 from `AWS_ROLE_ARN` and `AWS_WEB_IDENTITY_TOKEN_FILE`, is chained into
a cross-account role that grants access to the stream.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, cast

import boto3
from botocore.credentials import CredentialProvider, RefreshableCredentials
from botocore.session import get_session

from kinesis_consumer.settings import Environment, Settings

logger = logging.getLogger(__name__)


def role_session_name(hostname: str) -> str:
    return f"{hostname}-{int(time.time() * 1000)}"


class ChainedRoleProvider(CredentialProvider):
    """
    Assumes `role_arn` with the credentials of the `sts` client.

    The credentials are refreshed through `sts` shortly before they expire, the
    role session name stays the same for the lifetime of the process.
    """

    METHOD = "sts-assume-role"
    CANONICAL_NAME = "chained-role"

    def __init__(self, sts: Any, role_arn: str, session_name: str) -> None:
        super().__init__()
        self._sts = sts
        self._role_arn = role_arn
        self._session_name = session_name

    def load(self) -> RefreshableCredentials:
        return RefreshableCredentials.create_from_metadata(
            metadata=self._assume_role(),
            refresh_using=self._assume_role,
            method=self.METHOD,
        )

    def _assume_role(self) -> dict[str, str]:
        response = self._sts.assume_role(
            RoleArn=self._role_arn,
            RoleSessionName=self._session_name,
        )
        credentials = response["Credentials"]
        return {
            "access_key": credentials["AccessKeyId"],
            "secret_key": credentials["SecretAccessKey"],
            "token": credentials["SessionToken"],
            "expiry_time": credentials["Expiration"].isoformat(),
        }


def assume_role_session(
    sts: Any,
    role_arn: str,
    hostname: str,
    region: str,
) -> boto3.Session:
    """Returns a session whose credentials come from assuming `role_arn`."""
    logger.info("Hostname %s is assuming role: %s", hostname, role_arn)
    provider = ChainedRoleProvider(sts, role_arn, role_session_name(hostname))

    botocore_session = get_session()
    resolver = botocore_session.get_component("credential_provider")
    resolver.insert_before("env", provider)
    return boto3.Session(botocore_session=botocore_session, region_name=region)


@dataclass(frozen=True)
class StreamClients:
    session: boto3.Session
    region: str
    endpoint_url: str | None = None

    def __call__(self, service_name: str) -> Any:
        return self.session.client(
            service_name,
            endpoint_url=self.endpoint_url,
            region_name=self.region,
        )


def stream_clients(settings: Settings, base: boto3.Session) -> StreamClients:
    aws = settings.cloud.aws
    if settings.environment is Environment.LOCAL:
        return StreamClients(
            session=base,
            region=aws.localstack.region,
            endpoint_url=aws.localstack.endpoint_url,
        )

    sts = base.client("sts", region_name=aws.region)
    session = assume_role_session(
        sts,
        cast(str, aws.arn),
        settings.app.meta.hostname,
        aws.region,
    )
    return StreamClients(session=session, region=aws.region)
