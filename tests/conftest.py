from pathlib import Path
from typing import Iterator

import pytest

from ecr_ensure.constants import GITHUB_OUTPUT_ENV_VAR, REPOSITORY_NAME_ENV_VAR
from ecr_ensure.logger import setup_logger


@pytest.fixture(autouse=True)
def aws_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    # Fake credentials so that no test can reach a real account
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    for name in (
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
        "AWS_PROFILE",
        REPOSITORY_NAME_ENV_VAR,
        GITHUB_OUTPUT_ENV_VAR,
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def chdir_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def reset_logger() -> Iterator[None]:
    yield
    # The CLI callback binds the handler to CliRunner's stderr, which is closed
    # once the invocation is over
    setup_logger()
