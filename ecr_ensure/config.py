from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from ruamel.yaml import YAML

from ecr_ensure.utils import to_yaml

CONFIG_VERSION = "1.0"

# Repository names as accepted by ECR, with optional namespaces
REPOSITORY_NAME_PATTERN = re.compile(
    r"^(?:[a-z0-9]+(?:[._-][a-z0-9]+)*/)*[a-z0-9]+(?:[._-][a-z0-9]+)*$"
)

REGION_PATTERN = re.compile(r"^[a-z]{2,}(-[a-z]+)+-\d+$")


class EnsureBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ImageTagMutability(str, Enum):
    MUTABLE = "MUTABLE"
    IMMUTABLE = "IMMUTABLE"


class EncryptionType(str, Enum):
    AES256 = "AES256"
    KMS = "KMS"


class RepositoryIdentity(EnsureBaseModel):
    """
    Identifies the repository to ensure.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., description="The name of the ECR repository.")
    region: str = Field(..., description="The region of the target registry.")

    @field_validator("name", mode="before")
    def validate_name(cls, v: str) -> str:
        """
        Validates the repository name against the ECR naming rules.

        Args:
            v (str): The value of the name field.

        Returns:
            str: The input value if validation is successful.

        Raises:
            ValueError: If the name is empty, too short or too long, or contains
                characters ECR does not accept.
        """
        if not isinstance(v, str) or not v:
            raise ValueError("Repository name is required")
        if len(v) < 2 or len(v) > 256:
            raise ValueError("Repository name must be between 2 and 256 characters")
        if not REPOSITORY_NAME_PATTERN.match(v):
            raise ValueError(
                "Invalid repository name. It may contain only lowercase letters, "
                "digits, '.', '_', '-' and '/', and each path component must start "
                "and end with a letter or digit."
            )
        return v

    @field_validator("region", mode="before")
    def validate_region(cls, v: str) -> str:
        if not isinstance(v, str) or not v:
            raise ValueError("Region is required")
        if not REGION_PATTERN.match(v):
            raise ValueError(f"Invalid region format: {v}")
        return v


class RepositorySettings(EnsureBaseModel):
    """
    Settings applied when the repository has to be created. An existing
    repository is never modified.
    """

    imageTagMutability: ImageTagMutability = Field(
        ImageTagMutability.MUTABLE, description="The tag mutability setting."
    )
    scanOnPush: bool = Field(
        False, description="Whether images are scanned after being pushed."
    )
    encryptionType: EncryptionType = Field(
        EncryptionType.AES256, description="The encryption type at rest."
    )
    kmsKey: Optional[str] = Field(
        None, description="The KMS key to use when encryptionType is KMS."
    )
    tags: Dict[str, str] = Field(
        default_factory=dict, description="Tags added to the created repository."
    )
    registryId: Optional[str] = Field(
        None,
        description="The AWS account ID of the registry. Defaults to the caller's account.",
    )

    @field_validator("registryId", mode="before")
    def validate_registry_id(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not re.match(r"^\d{12}$", str(v)):
            raise ValueError("registryId must be a 12 digit AWS account ID")
        return None if v is None else str(v)

    @model_validator(mode="after")
    def check_kms_key(self) -> "RepositorySettings":
        if self.kmsKey and self.encryptionType != EncryptionType.KMS:
            raise ValueError("kmsKey can only be set when encryptionType is KMS")
        return self

    def create_arguments(self) -> Dict[str, Any]:
        """
        Builds the keyword arguments for ECR's create_repository call.

        Returns:
            Dict[str, Any]: The arguments, without repositoryName.
        """
        encryption: Dict[str, Any] = {"encryptionType": self.encryptionType.value}
        if self.kmsKey:
            encryption["kmsKey"] = self.kmsKey

        args: Dict[str, Any] = {
            "imageTagMutability": self.imageTagMutability.value,
            "imageScanningConfiguration": {"scanOnPush": self.scanOnPush},
            "encryptionConfiguration": encryption,
        }
        if self.tags:
            args["tags"] = [{"Key": k, "Value": v} for k, v in self.tags.items()]
        if self.registryId:
            args["registryId"] = self.registryId
        return args


class RepositoryRef(EnsureBaseModel):
    """
    Repository coordinates as written in the config file. Both fields are
    optional so that the command line or the environment can supply them.
    """

    name: Optional[str] = Field(None, description="The name of the ECR repository.")
    region: Optional[str] = Field(None, description="The region of the registry.")


class EnsureConfig(EnsureBaseModel):
    """
    Configuration file for ecr-ensure.
    """

    version: str = Field(..., description="The version of the configuration.")
    repository: Optional[RepositoryRef] = Field(
        None, description="The repository to ensure."
    )
    settings: RepositorySettings = Field(
        default_factory=RepositorySettings,
        description="Settings applied when the repository is created.",
    )

    @field_validator("version", mode="before")
    def validate_version(cls, v: str) -> str:
        if not re.match(r"^\d+\.\d+$", str(v)):
            raise ValueError('version must be in the format "x.x"')
        return str(v)


def generate_yaml(config: EnsureConfig) -> str:
    """
    Generate a YAML string representation of the given config object.

    Args:
        config (EnsureConfig): The config object to generate YAML from.

    Returns:
        str: The YAML string representation of the config object.
    """
    return to_yaml(config.model_dump(mode="json", exclude_none=True))


def parse_yaml(yaml_str: str) -> EnsureConfig:
    """
    Parse a YAML string and return an EnsureConfig object.

    Args:
        yaml_str (str): The YAML string to parse.

    Returns:
        EnsureConfig: The parsed config object.

    Raises:
        ValueError: If the version is missing, malformed or not supported by
            this tool, or if the content does not match the config schema.
    """
    yaml = YAML()
    data = yaml.load(yaml_str)
    if not isinstance(data, dict):
        raise ValueError("Invalid configuration: expected a mapping at the top level.")

    version = data.get("version", None)
    if version is None:
        raise ValueError("Invalid configuration: The 'version' field is missing.")

    version = str(version)
    if not re.match(r"^\d+\.\d+$", version):
        raise ValueError('version must be in the format "x.x"')

    # Make sure the major version matches
    major_version, minor_version = map(int, version.split("."))
    tool_major_version, tool_minor_version = map(int, CONFIG_VERSION.split("."))

    if major_version != tool_major_version:
        raise ValueError(
            f"Invalid configuration: This tool supports version {tool_major_version}.x only."
        )
    elif minor_version > tool_minor_version:  # No forward compatibility
        raise ValueError(
            f"Invalid configuration: This tool supports versions up to {tool_major_version}.{tool_minor_version}."
            " Please upgrade your tool to handle this configuration."
        )

    data["version"] = version
    return EnsureConfig(**data)
