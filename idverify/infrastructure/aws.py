# idverify/infrastructure/aws.py
import os
from functools import lru_cache

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..domain.errors import CollaboratorError

# Errors raised by any boto3 call; adapters turn them into CollaboratorError.
AWS_ERRORS = (BotoCoreError, ClientError)


def client_config() -> Config:
    # Transient failures (throttling, 5xx, connection errors) are retried by
    # botocore itself; anything else surfaces on the first attempt.
    return Config(
        connect_timeout=float(os.getenv("AWS_CONNECT_TIMEOUT", "5")),
        read_timeout=float(os.getenv("AWS_READ_TIMEOUT", "30")),
        retries={"max_attempts": int(os.getenv("AWS_MAX_ATTEMPTS", "3")), "mode": "standard"},
    )


@lru_cache(maxsize=None)
def aws_client(service: str, region: str | None = None):
    return boto3.client(
        service,
        region_name=region or os.getenv("AWS_REGION", "us-east-1"),
        config=client_config(),
    )


def collaborator_error(collaborator: str, ex: Exception) -> CollaboratorError:
    if isinstance(ex, ClientError):
        err = ex.response.get("Error", {})
        return CollaboratorError(collaborator, f"{err.get('Code', 'ClientError')}: {err.get('Message', str(ex))}")
    return CollaboratorError(collaborator, str(ex))


def error_code(ex: Exception) -> str:
    if isinstance(ex, ClientError):
        return ex.response.get("Error", {}).get("Code", "")
    return ""
