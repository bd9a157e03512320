from __future__ import annotations

from typing import Optional

from botocore.exceptions import (
    ClientError,
    InvalidRegionError,
    NoCredentialsError,
    NoRegionError,
    ParamValidationError,
)

from ecr_ensure.constants import EXIT_PERMISSION_DENIED, EXIT_UNKNOWN, EXIT_VALIDATION

# Error code returned by describe_repositories when the repository is absent
REPOSITORY_NOT_FOUND = "RepositoryNotFoundException"

# Error code returned by create_repository when the repository already exists
REPOSITORY_ALREADY_EXISTS = "RepositoryAlreadyExistsException"

PERMISSION_DENIED_CODES = frozenset(
    {
        "AccessDeniedException",
        "AccessDenied",
        "UnrecognizedClientException",
        "InvalidSignatureException",
        "ExpiredTokenException",
    }
)

VALIDATION_CODES = frozenset(
    {
        "InvalidParameterException",
        "ValidationException",
        "InvalidTagParameterException",
        "KmsException",
    }
)


class EnsureError(Exception):
    """
    Base class for failures that stop an ensure invocation.

    Attributes:
        code (str): The remote error code, or the exception class name for
            errors raised before reaching the service.
        message (str): The error message as reported by the service or client.
        operation (Optional[str]): The remote call that failed, if any.
    """

    hint = ""
    exit_code = EXIT_UNKNOWN

    def __init__(
        self, message: str, code: str = "", operation: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or type(self).__name__
        self.operation = operation

    def describe(self) -> str:
        where = f" during {self.operation}" if self.operation else ""
        text = f"{self.code}{where}: {self.message}"
        if self.hint:
            text = f"{text}\n{self.hint}"
        return text


class PermissionDeniedError(EnsureError):
    hint = (
        "Check that the IAM policy of the current credentials allows "
        "ecr:DescribeRepositories and ecr:CreateRepository on the repository."
    )
    exit_code = EXIT_PERMISSION_DENIED


class RepositoryValidationError(EnsureError):
    hint = "Check the repository name, region and creation settings."
    exit_code = EXIT_VALIDATION


class RegistryError(EnsureError):
    """
    Any remote failure that is neither a permission nor a validation problem:
    throttling, service faults, network errors and unknown codes.
    """


def classify_error(exc: Exception, operation: Optional[str] = None) -> EnsureError:
    """
    Converts a botocore exception into the matching EnsureError.

    RepositoryNotFoundException is not special-cased here. Callers that can
    recover from it must check for it before classifying.

    Args:
        exc (Exception): The exception raised by the ECR client.
        operation (Optional[str]): The name of the remote call that failed.

    Returns:
        EnsureError: The classified error.
    """
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code", "")
        message = error.get("Message", "") or str(exc)
        if code in PERMISSION_DENIED_CODES:
            return PermissionDeniedError(message, code, operation)
        if code in VALIDATION_CODES:
            return RepositoryValidationError(message, code, operation)
        return RegistryError(str(exc), code, operation)

    code = type(exc).__name__
    if isinstance(exc, NoCredentialsError):
        return PermissionDeniedError(str(exc), code, operation)
    if isinstance(exc, (ParamValidationError, NoRegionError, InvalidRegionError)):
        return RepositoryValidationError(str(exc), code, operation)
    return RegistryError(str(exc), code, operation)


def error_code(exc: ClientError) -> str:
    """Returns the remote error code of a ClientError, or "" if it has none."""
    return exc.response.get("Error", {}).get("Code", "")
