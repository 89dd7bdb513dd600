from delivery_pipeline.models import PolicyEffect
from delivery_pipeline.policy import (
    ARTIFACT_BUCKET_ACTIONS,
    SSM_READ_ACTIONS,
    DeploymentContext,
    build_policy_statements,
    ssm_parameter_arn,
)
from delivery_pipeline.references import ssm_parameter


CONTEXT = DeploymentContext(account="123456789012", region="us-west-2")


def test_empty_paths_yield_only_bucket_statement():
    statements = build_policy_statements([], "orders-artifacts", CONTEXT)
    assert len(statements) == 1
    statement = statements[0]
    assert statement.effect == PolicyEffect.ALLOW
    assert set(statement.actions) == {"s3:PutObject", "s3:GetObject", "s3:CreateMultipartUpload"}
    assert statement.resources == ["arn:aws:s3:::orders-artifacts", "arn:aws:s3:::orders-artifacts/*"]


def test_parameter_paths_are_qualified_with_account_and_region():
    paths = ["/cicd/orders/*", "/cicd/common/*", "/shared/npm"]
    statements = build_policy_statements(paths, "orders-artifacts", CONTEXT)
    assert len(statements) == 2
    ssm_statement = statements[0]
    assert len(ssm_statement.resources) == len(paths)
    for resource in ssm_statement.resources:
        assert ":us-west-2:" in resource
        assert ":123456789012:" in resource
    assert ssm_statement.resources[0] == "arn:aws:ssm:us-west-2:123456789012:parameter/cicd/orders/*"


def test_parameter_read_verbs_cover_minimum_set():
    statements = build_policy_statements(["/cicd/orders/*"], "bucket", CONTEXT)
    assert "ssm:GetParameter" in statements[0].actions
    assert set(SSM_READ_ACTIONS) <= set(statements[0].actions)
    assert set(ARTIFACT_BUCKET_ACTIONS) <= set(statements[1].actions)


def test_relative_parameter_path_gets_leading_slash():
    assert ssm_parameter_arn("cicd/orders/*", CONTEXT) == "arn:aws:ssm:us-west-2:123456789012:parameter/cicd/orders/*"


def test_partition_is_taken_from_context():
    context = DeploymentContext(account="1234", region="cn-north-1", partition="aws-cn")
    statements = build_policy_statements(["/cicd/*"], "bucket", context)
    assert statements[0].resources == ["arn:aws-cn:ssm:cn-north-1:1234:parameter/cicd/*"]
    assert statements[1].resources[0] == "arn:aws-cn:s3:::bucket"


def test_deferred_bucket_renders_as_dynamic_reference():
    statements = build_policy_statements([], ssm_parameter("/cicd/common/lambdaBucket"), CONTEXT)
    assert statements[0].resources == [
        "arn:aws:s3:::{{resolve:ssm:/cicd/common/lambdaBucket}}",
        "arn:aws:s3:::{{resolve:ssm:/cicd/common/lambdaBucket}}/*",
    ]


def test_statements_are_rebuilt_identically():
    first = build_policy_statements(["/cicd/orders/*"], "bucket", CONTEXT)
    second = build_policy_statements(["/cicd/orders/*"], "bucket", CONTEXT)
    assert first == second
