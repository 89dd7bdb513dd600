from dataclasses import dataclass
from typing import Iterable, List

from delivery_pipeline.models import ConfigValue, PolicyStatement


SSM_READ_ACTIONS = [
    "ssm:GetParameter",
    "ssm:GetParameters",
    "ssm:DescribeParameters",
    "ssm:GetParameterHistory",
]
ARTIFACT_BUCKET_ACTIONS = ["s3:PutObject", "s3:GetObject", "s3:CreateMultipartUpload"]


@dataclass(frozen=True)
class DeploymentContext:
    account: str
    region: str
    partition: str = "aws"


def ssm_parameter_arn(path: str, context: DeploymentContext) -> str:
    if not path.startswith("/"):
        path = f"/{path}"
    return f"arn:{context.partition}:ssm:{context.region}:{context.account}:parameter{path}"


def bucket_arn(bucket: ConfigValue, context: DeploymentContext) -> str:
    return f"arn:{context.partition}:s3:::{bucket}"


def ssm_read_statement(paths: Iterable[str], context: DeploymentContext) -> PolicyStatement:
    return PolicyStatement(
        actions=list(SSM_READ_ACTIONS),
        resources=[ssm_parameter_arn(path, context) for path in paths],
    )


def artifact_bucket_statement(bucket: ConfigValue, context: DeploymentContext) -> PolicyStatement:
    arn = bucket_arn(bucket, context)
    return PolicyStatement(actions=list(ARTIFACT_BUCKET_ACTIONS), resources=[arn, f"{arn}/*"])


def build_policy_statements(
    paths: Iterable[str],
    bucket: ConfigValue,
    context: DeploymentContext,
) -> List[PolicyStatement]:
    statements: List[PolicyStatement] = []
    paths = list(paths)
    if paths:
        statements.append(ssm_read_statement(paths, context))
    statements.append(artifact_bucket_statement(bucket, context))
    return statements
