from __future__ import annotations

from typing import List, Optional

import typer

from ecr_ensure.cli.utils import (
    exit_with_error,
    load_ensure_config,
    resolve_identity,
    resolve_settings,
)
from ecr_ensure.config import EncryptionType, ImageTagMutability
from ecr_ensure.constants import EXIT_VALIDATION
from ecr_ensure.container.ecr import ensure_repository
from ecr_ensure.errors import EnsureError
from ecr_ensure.logger import logger
from ecr_ensure.outputs import (
    OutputFormat,
    format_outputs,
    result_outputs,
    write_github_outputs,
)
from ecr_ensure.utils import parse_key_values

ensure_app = typer.Typer()


@ensure_app.callback(invoke_without_command=True)
def ensure(
    repository_name: Optional[str] = typer.Option(
        None,
        "--repository-name",
        "-n",
        help="The name of the ECR repository. Defaults to $REPOSITORY_NAME.",
    ),
    region: Optional[str] = typer.Option(
        None,
        "--region",
        "-r",
        help="The AWS region of the registry. Defaults to $AWS_REGION or $AWS_DEFAULT_REGION.",
    ),
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        "-f",
        help="Path to a config file. Defaults to ./ecr-ensure.yaml when it exists.",
    ),
    image_tag_mutability: Optional[ImageTagMutability] = typer.Option(
        None,
        "--image-tag-mutability",
        case_sensitive=False,
        help="Tag mutability of a newly created repository.",
    ),
    scan_on_push: Optional[bool] = typer.Option(
        None,
        "--scan-on-push/--no-scan-on-push",
        help="Whether a newly created repository scans images on push.",
    ),
    encryption_type: Optional[EncryptionType] = typer.Option(
        None,
        "--encryption-type",
        case_sensitive=False,
        help="Encryption at rest of a newly created repository.",
    ),
    kms_key: Optional[str] = typer.Option(
        None,
        "--kms-key",
        help="KMS key for a newly created repository. Requires --encryption-type KMS.",
    ),
    tags: Optional[List[str]] = typer.Option(
        None,
        "--tag",
        help="Tag for a newly created repository, as KEY=VALUE. Can be repeated.",
    ),
    registry_id: Optional[str] = typer.Option(
        None,
        "--registry-id",
        help="The AWS account ID of the registry. Defaults to the caller's account.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--output-format",
        "-o",
        case_sensitive=False,
        help="Format of the outputs printed to stdout.",
    ),
) -> None:
    """
    Ensure an ECR repository exists, creating it if it is missing.

    Prints "repository-exists" and "repository-uri". When $GITHUB_OUTPUT is
    set, the same outputs are appended to that file for use by later steps.

    Creation settings only apply when the repository is created. Requires the
    ecr:DescribeRepositories and ecr:CreateRepository permissions.
    """
    config = load_ensure_config(config_file)
    identity = resolve_identity(repository_name, region, config)

    try:
        parsed_tags = parse_key_values(tags) if tags else None
    except ValueError as e:
        logger.error(str(e))
        raise typer.Exit(EXIT_VALIDATION)

    settings = resolve_settings(
        config,
        {
            "imageTagMutability": image_tag_mutability,
            "scanOnPush": scan_on_push,
            "encryptionType": encryption_type,
            "kmsKey": kms_key,
            "tags": parsed_tags,
            "registryId": registry_id,
        },
    )

    logger.info(f"Ensuring repository {identity.name} in {identity.region}...")
    try:
        result = ensure_repository(identity, settings)
    except EnsureError as e:
        exit_with_error(e)

    outputs = result_outputs(result)
    write_github_outputs(outputs)
    typer.echo(format_outputs(outputs, output_format))
