from __future__ import annotations

import os
from typing import Any, Dict, NoReturn, Optional

import typer
from pydantic import ValidationError
from ruamel.yaml.error import YAMLError

from ecr_ensure.config import (
    EnsureConfig,
    RepositoryIdentity,
    RepositorySettings,
    parse_yaml,
)
from ecr_ensure.constants import (
    DEFAULT_CONFIG_FILE,
    EXIT_VALIDATION,
    REGION_ENV_VARS,
    REPOSITORY_NAME_ENV_VAR,
)
from ecr_ensure.errors import EnsureError
from ecr_ensure.logger import logger
from ecr_ensure.utils import first_env


def format_validation_error(e: ValidationError) -> str:
    messages = []
    for err in e.errors():
        loc = ".".join(str(part) for part in err["loc"])
        msg = err["msg"].removeprefix("Value error, ")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


def exit_with_error(e: EnsureError) -> NoReturn:
    """
    Logs an EnsureError with its guidance and exits with the exit code of its
    class.

    Raises:
        typer.Exit: Always.
    """
    logger.error(e.describe())
    raise typer.Exit(e.exit_code)


def load_ensure_config(config_file: Optional[str]) -> Optional[EnsureConfig]:
    """
    Loads the ecr-ensure config file.

    An explicitly given file must exist. When no file is given, the default
    "./ecr-ensure.yaml" is used if it is present.

    Args:
        config_file (Optional[str]): The path to the config file.

    Returns:
        Optional[EnsureConfig]: The parsed config, or None if no file was
        given and the default file does not exist.

    Raises:
        typer.Exit: If the file is missing or invalid.
    """
    explicit = bool(config_file)
    path = os.path.abspath(os.path.expanduser(config_file or DEFAULT_CONFIG_FILE))
    if not os.path.exists(path):
        if explicit:
            logger.error(f"Config file {path} does not exist.")
            raise typer.Exit(EXIT_VALIDATION)
        return None

    try:
        with open(path, "r") as file:
            return parse_yaml(file.read())
    except ValidationError as e:
        logger.error(f"Invalid config file {path}: {format_validation_error(e)}")
        raise typer.Exit(EXIT_VALIDATION)
    except (ValueError, YAMLError) as e:
        logger.error(f"Invalid config file {path}: {e}")
        raise typer.Exit(EXIT_VALIDATION)


def resolve_identity(
    name: Optional[str], region: Optional[str], config: Optional[EnsureConfig]
) -> RepositoryIdentity:
    """
    Determines the repository to ensure.

    Values are taken from the command line first, then the environment
    (REPOSITORY_NAME, AWS_REGION, AWS_DEFAULT_REGION), then the config file.
    The environment variables are defaults of the command line options, so
    they also win over the file.

    Raises:
        typer.Exit: If the name or region is missing or invalid.
    """
    ref = config.repository if config else None
    name = name or first_env(REPOSITORY_NAME_ENV_VAR) or (ref.name if ref else None)
    region = region or first_env(*REGION_ENV_VARS) or (ref.region if ref else None)

    if not name:
        logger.error(
            "Please provide a repository name with --repository-name or "
            f"the {REPOSITORY_NAME_ENV_VAR} environment variable."
        )
        raise typer.Exit(EXIT_VALIDATION)

    if not region:
        logger.error(
            "Please provide a region with --region or the "
            f"{' or '.join(REGION_ENV_VARS)} environment variable."
        )
        raise typer.Exit(EXIT_VALIDATION)

    try:
        return RepositoryIdentity(name=name, region=region)
    except ValidationError as e:
        logger.error(format_validation_error(e))
        raise typer.Exit(EXIT_VALIDATION)


def resolve_settings(
    config: Optional[EnsureConfig], overrides: Dict[str, Any]
) -> RepositorySettings:
    """
    Merges command line overrides into the creation settings of the config
    file. Overrides set to None are ignored. Tags are merged, with the
    command line winning on duplicate keys.

    Raises:
        typer.Exit: If the merged settings are invalid.
    """
    base = config.settings if config else RepositorySettings()
    merged = base.model_dump(exclude_none=True)

    for k, v in overrides.items():
        if v is None:
            continue
        if k == "tags":
            merged["tags"] = {**merged.get("tags", {}), **v}
        else:
            merged[k] = v

    try:
        return RepositorySettings(**merged)
    except ValidationError as e:
        logger.error(format_validation_error(e))
        raise typer.Exit(EXIT_VALIDATION)
