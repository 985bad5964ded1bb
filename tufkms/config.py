from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .utils.retry import RetryPolicy


class AwsConfig(BaseModel):
    """Connection settings for the AWS KMS client."""

    region: Optional[str] = None
    profile: Optional[str] = None
    endpoint_url: Optional[str] = None


class ServiceConfig(BaseModel):
    """Key-management service selection."""

    backend: Literal["aws", "inmemory"] = "aws"
    aws: AwsConfig = AwsConfig()


class RetryConfig(BaseModel):
    """Retry budget for service calls."""

    max_attempts: int = Field(default=5, ge=1)
    initial_backoff: float = Field(default=0.1, ge=0)
    max_backoff: float = Field(default=1.0, ge=0)
    backoff_factor: float = Field(default=1.5, ge=1)
    jitter: float = Field(default=0.1, ge=0)
    max_elapsed: float = Field(default=30.0, gt=0)

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(**self.model_dump())


class TufKmsConfig(BaseModel):
    """Top-level configuration model."""

    service: ServiceConfig = ServiceConfig()
    retry: RetryConfig = RetryConfig()
    min_rsa_key_size: int = 2048


def load_config(path: Optional[str] = None) -> TufKmsConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to TUFKMS_CONFIG env
            variable or 'tufkms.yaml' in the current directory.
    """

    config_path = path or os.getenv("TUFKMS_CONFIG", "tufkms.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = TufKmsConfig(**data)
    else:
        config = TufKmsConfig()

    env_backend = os.getenv("TUFKMS_SERVICE_BACKEND")
    if env_backend:
        config.service = ServiceConfig.model_validate(
            {**config.service.model_dump(), "backend": env_backend.lower()}
        )
    return config
