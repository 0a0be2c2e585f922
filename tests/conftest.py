from pathlib import Path

import pytest

from kinesis_consumer.dynamodb import TableTtlRegistry
from kinesis_consumer.settings import Settings, load_settings
from tests.factories import a_registry, local_settings


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIATESTACCESSKEY")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test")
    monkeypatch.setenv("AWS_EC2_METADATA_DISABLED", "true")
    for name in ("AWS_PROFILE", "AWS_ROLE_ARN", "AWS_WEB_IDENTITY_TOKEN_FILE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def no_config_file(tmp_path: Path) -> Path:
    return tmp_path / "missing.yml"


@pytest.fixture()
def registry() -> TableTtlRegistry:
    return TableTtlRegistry.build(a_registry())


@pytest.fixture()
def settings(no_config_file: Path) -> Settings:
    return load_settings(no_config_file, **local_settings())
