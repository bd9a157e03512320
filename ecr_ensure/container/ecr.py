from __future__ import annotations

from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ConfigDict, Field

from ecr_ensure.config import EnsureBaseModel, RepositoryIdentity, RepositorySettings
from ecr_ensure.errors import (
    REPOSITORY_ALREADY_EXISTS,
    REPOSITORY_NOT_FOUND,
    classify_error,
    error_code,
)
from ecr_ensure.logger import logger


class EnsureResult(EnsureBaseModel):
    """
    The outcome of a single ensure invocation.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    existed: bool = Field(
        ..., description="Whether the repository existed before the call."
    )
    uri: str = Field(..., description="The URI used to tag and push images.")


def get_ecr_client(region: str) -> Any:
    try:
        return boto3.client("ecr", region_name=region)
    except BotoCoreError as e:
        raise classify_error(e, "CreateClient") from e


def describe_repository(
    client: Any, name: str, registry_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Fetches the description of a single repository.

    Botocore errors propagate unchanged so that callers can tell
    RepositoryNotFoundException apart from other failures.
    """
    args: Dict[str, Any] = {"repositoryNames": [name]}
    if registry_id:
        args["registryId"] = registry_id

    logger.debug(f"Describing repository {name}")
    response = client.describe_repositories(**args)
    return response["repositories"][0]


def create_repository(
    client: Any, name: str, settings: RepositorySettings
) -> Dict[str, Any]:
    logger.debug(f"Creating repository {name}")
    response = client.create_repository(
        repositoryName=name, **settings.create_arguments()
    )
    return response["repository"]


def ensure_repository(
    identity: RepositoryIdentity,
    settings: Optional[RepositorySettings] = None,
    client: Any = None,
) -> EnsureResult:
    """
    Makes sure an ECR repository exists, creating it when it is missing.

    The repository is described first. Only a RepositoryNotFoundException
    leads to a create call. Every other failure is classified and raised, so
    that "needs creation" is never confused with "cannot determine state".
    If creation loses a race against another caller, the repository is
    described again and reported as already existing.

    Creation settings are only used for a new repository. An existing
    repository is returned as-is.

    Args:
        identity (RepositoryIdentity): The name and region of the repository.
        settings (Optional[RepositorySettings]): Settings for a newly created
            repository. Defaults to RepositorySettings().
        client (Any): An ECR client. If omitted, one is created for the
            identity's region.

    Raises:
        PermissionDeniedError: If the credentials are missing or not allowed
            to describe or create the repository.
        RepositoryValidationError: If the service rejects the name, region or
            settings.
        RegistryError: For any other remote failure.

    Returns:
        EnsureResult: Whether the repository existed, and its URI.
    """
    settings = settings or RepositorySettings()
    if client is None:
        client = get_ecr_client(identity.region)

    try:
        repository = describe_repository(client, identity.name, settings.registryId)
    except ClientError as e:
        if error_code(e) != REPOSITORY_NOT_FOUND:
            raise classify_error(e, "DescribeRepositories") from e
        logger.info(f"Repository {identity.name} not found in {identity.region}")
    except BotoCoreError as e:
        raise classify_error(e, "DescribeRepositories") from e
    else:
        logger.info(f"Repository {identity.name} already exists")
        return EnsureResult(existed=True, uri=repository["repositoryUri"])

    try:
        repository = create_repository(client, identity.name, settings)
    except ClientError as e:
        if error_code(e) != REPOSITORY_ALREADY_EXISTS:
            raise classify_error(e, "CreateRepository") from e
        logger.info(
            f"Repository {identity.name} was created concurrently, reading it back"
        )
    except BotoCoreError as e:
        raise classify_error(e, "CreateRepository") from e
    else:
        logger.info(f"Created repository {repository['repositoryUri']}")
        return EnsureResult(existed=False, uri=repository["repositoryUri"])

    try:
        repository = describe_repository(client, identity.name, settings.registryId)
    except (ClientError, BotoCoreError) as e:
        raise classify_error(e, "DescribeRepositories") from e
    return EnsureResult(existed=True, uri=repository["repositoryUri"])
