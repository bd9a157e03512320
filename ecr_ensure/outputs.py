from __future__ import annotations

import json
import os
from enum import Enum
from typing import Dict, Optional

from ecr_ensure.constants import (
    GITHUB_OUTPUT_ENV_VAR,
    REPOSITORY_EXISTS_OUTPUT,
    REPOSITORY_URI_OUTPUT,
)
from ecr_ensure.container.ecr import EnsureResult
from ecr_ensure.logger import logger
from ecr_ensure.utils import to_yaml


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"
    YAML = "yaml"


def result_outputs(result: EnsureResult) -> Dict[str, str]:
    """
    Maps an EnsureResult to the step outputs.

    Returns:
        Dict[str, str]: "repository-exists" as "true"/"false" and "repository-uri".
    """
    return {
        REPOSITORY_EXISTS_OUTPUT: "true" if result.existed else "false",
        REPOSITORY_URI_OUTPUT: result.uri,
    }


def format_outputs(outputs: Dict[str, str], output_format: OutputFormat) -> str:
    if output_format == OutputFormat.JSON:
        return json.dumps(outputs, indent=2)
    elif output_format == OutputFormat.YAML:
        return to_yaml(outputs).rstrip("\n")
    return "\n".join(f"{k}={v}" for k, v in outputs.items())


def write_github_outputs(
    outputs: Dict[str, str], output_file: Optional[str] = None
) -> bool:
    """
    Appends outputs to the file GitHub Actions reads step outputs from.

    Args:
        outputs (Dict[str, str]): The outputs to write. Values must be single line.
        output_file (Optional[str]): The file to append to. Defaults to the
            path in the GITHUB_OUTPUT environment variable.

    Returns:
        bool: True if the outputs were written, False if no output file is set.
    """
    output_file = output_file or os.environ.get(GITHUB_OUTPUT_ENV_VAR)
    if not output_file:
        return False

    with open(output_file, "a") as f:
        for k, v in outputs.items():
            f.write(f"{k}={v}\n")

    logger.debug(f"Wrote outputs to {output_file}")
    return True
