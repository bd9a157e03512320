from pathlib import Path

import pytest
import typer

from ecr_ensure.cli.utils import (
    exit_with_error,
    load_ensure_config,
    resolve_identity,
    resolve_settings,
)
from ecr_ensure.config import (
    EncryptionType,
    EnsureConfig,
    ImageTagMutability,
    RepositoryRef,
    RepositorySettings,
)
from ecr_ensure.constants import EXIT_PERMISSION_DENIED, EXIT_VALIDATION
from ecr_ensure.errors import PermissionDeniedError

CONFIG = EnsureConfig(
    version="1.0",
    repository=RepositoryRef(name="from-config", region="eu-west-1"),
    settings=RepositorySettings(scanOnPush=True, tags={"team": "platform"}),
)


def test_load_ensure_config(chdir_tmp: Path) -> None:
    # No default file in the current directory
    assert load_ensure_config(None) is None

    (chdir_tmp / "ecr-ensure.yaml").write_text(
        'version: "1.0"\nrepository:\n  name: my-app\n'
    )
    config = load_ensure_config(None)
    assert config is not None
    assert config.repository == RepositoryRef(name="my-app")

    other = chdir_tmp / "other.yaml"
    other.write_text('version: "1.0"\nsettings:\n  scanOnPush: true\n')
    config = load_ensure_config(str(other))
    assert config is not None
    assert config.settings.scanOnPush is True


def test_load_ensure_config_errors(chdir_tmp: Path) -> None:
    with pytest.raises(typer.Exit) as exc_info:
        load_ensure_config("missing.yaml")
    assert exc_info.value.exit_code == EXIT_VALIDATION

    (chdir_tmp / "bad-version.yaml").write_text('version: "3.0"\n')
    with pytest.raises(typer.Exit) as exc_info:
        load_ensure_config("bad-version.yaml")
    assert exc_info.value.exit_code == EXIT_VALIDATION

    (chdir_tmp / "bad-field.yaml").write_text(
        'version: "1.0"\nsettings:\n  scanOnPsh: true\n'
    )
    with pytest.raises(typer.Exit) as exc_info:
        load_ensure_config("bad-field.yaml")
    assert exc_info.value.exit_code == EXIT_VALIDATION


def test_resolve_identity_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPOSITORY_NAME", "from-env")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-south-1")

    identity = resolve_identity(None, None, None)
    assert (identity.name, identity.region) == ("from-env", "ap-south-1")

    monkeypatch.setenv("AWS_REGION", "us-west-2")
    identity = resolve_identity(None, None, None)
    assert identity.region == "us-west-2"

    # The environment wins over the config file
    identity = resolve_identity(None, None, CONFIG)
    assert (identity.name, identity.region) == ("from-env", "us-west-2")

    identity = resolve_identity("from-cli", "us-east-1", CONFIG)
    assert (identity.name, identity.region) == ("from-cli", "us-east-1")


def test_resolve_identity_errors() -> None:
    with pytest.raises(typer.Exit) as exc_info:
        resolve_identity(None, "us-east-1", None)
    assert exc_info.value.exit_code == EXIT_VALIDATION

    with pytest.raises(typer.Exit) as exc_info:
        resolve_identity("my-app", None, None)
    assert exc_info.value.exit_code == EXIT_VALIDATION

    with pytest.raises(typer.Exit) as exc_info:
        resolve_identity("My_App!", "us-east-1", None)
    assert exc_info.value.exit_code == EXIT_VALIDATION


def test_resolve_settings() -> None:
    assert resolve_settings(None, {}) == RepositorySettings()

    settings = resolve_settings(
        CONFIG,
        {
            "imageTagMutability": ImageTagMutability.IMMUTABLE,
            "scanOnPush": None,
            "tags": {"env": "prod"},
        },
    )
    assert settings.imageTagMutability == ImageTagMutability.IMMUTABLE
    assert settings.scanOnPush is True
    assert settings.tags == {"team": "platform", "env": "prod"}

    settings = resolve_settings(
        CONFIG, {"scanOnPush": False, "tags": {"team": "data"}}
    )
    assert settings.scanOnPush is False
    assert settings.tags == {"team": "data"}

    settings = resolve_settings(
        None, {"encryptionType": EncryptionType.KMS, "kmsKey": "alias/ecr"}
    )
    assert settings.kmsKey == "alias/ecr"

    with pytest.raises(typer.Exit) as exc_info:
        resolve_settings(None, {"kmsKey": "alias/ecr"})
    assert exc_info.value.exit_code == EXIT_VALIDATION


def test_exit_with_error() -> None:
    with pytest.raises(typer.Exit) as exc_info:
        exit_with_error(PermissionDeniedError("denied", "AccessDeniedException"))
    assert exc_info.value.exit_code == EXIT_PERMISSION_DENIED


def test_resolve_identity_falls_back_to_config(
    chdir_tmp: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (chdir_tmp / "ecr-ensure.yaml").write_text(
        'version: "1.0"\nrepository:\n  name: stale-name\n  region: eu-west-1\n'
    )
    config = load_ensure_config(None)

    identity = resolve_identity(None, None, config)
    assert (identity.name, identity.region) == ("stale-name", "eu-west-1")

    monkeypatch.setenv("REPOSITORY_NAME", "from-action-input")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    identity = resolve_identity(None, None, config)
    assert (identity.name, identity.region) == ("from-action-input", "us-east-1")
