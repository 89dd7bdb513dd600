import os
from typing import Callable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from delivery_pipeline.errors import ConfigurationError
from delivery_pipeline.policy import DeploymentContext


class Settings:
    def __init__(self) -> None:
        self.account = self._first_env("DELIVERY_PIPELINE_ACCOUNT", "CDK_DEFAULT_ACCOUNT")
        self.region = self._first_env("DELIVERY_PIPELINE_REGION", "AWS_REGION", "AWS_DEFAULT_REGION")
        self.partition = self._get("DELIVERY_PIPELINE_PARTITION", "aws", str)
        self.discover_context = self._as_bool(self._get("DELIVERY_PIPELINE_DISCOVER_CONTEXT", "true", str))

        self.ssm_root = self._get("DELIVERY_PIPELINE_SSM_ROOT", "/cicd", str).rstrip("/")
        self.tools_repo = self._get("DELIVERY_PIPELINE_TOOLS_REPO", "maketools", str)
        self.source_secret_id = self._get("DELIVERY_PIPELINE_SOURCE_SECRET_ID", "codebuild/github/token", str)
        self.build_image = self._get("DELIVERY_PIPELINE_BUILD_IMAGE", "aws/codebuild/standard:4.0", str)
        self.compute_type = self._get("DELIVERY_PIPELINE_COMPUTE_TYPE", "BUILD_GENERAL1_SMALL", str)

    def _as_bool(self, value: object) -> bool:
        text = str(value or "").strip().lower()
        return text in {"1", "true", "yes", "on"}

    def _get(self, env_key: str, default, parser: Callable) -> Optional[object]:
        if env_key in os.environ:
            try:
                return parser(os.environ[env_key])
            except ValueError:
                return default
        return default

    def _first_env(self, *env_keys: str) -> str:
        for key in env_keys:
            value = os.environ.get(key, "").strip()
            if value:
                return value
        return ""

    def _discover_account(self) -> Optional[str]:
        try:
            identity = boto3.client("sts").get_caller_identity()
        except (BotoCoreError, ClientError):
            return None
        return identity.get("Account")

    def _discover_region(self) -> Optional[str]:
        return boto3.session.Session().region_name

    def deployment_context(self, account: Optional[str] = None, region: Optional[str] = None) -> DeploymentContext:
        account = account or self.account
        region = region or self.region
        if self.discover_context:
            if not region:
                region = self._discover_region()
            if not account:
                account = self._discover_account()
        missing = [name for name, value in (("account", account), ("region", region)) if not value]
        if missing:
            raise ConfigurationError(
                "CONTEXT_INCOMPLETE",
                f"Deployment context is missing: {', '.join(missing)}",
            )
        return DeploymentContext(account=account, region=region, partition=self.partition)


SETTINGS = Settings()
