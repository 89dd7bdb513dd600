from delivery_pipeline.models import DeferredValue, DeployStageSpec, LiveStage, SecretValue
from delivery_pipeline.pipeline import make_base_config
from delivery_pipeline.references import (
    INDIRECTION_PREFIX,
    is_indirect,
    resolve_config,
    resolve_references,
    ssm_parameter,
)


def test_prefixed_values_become_deferred_handles():
    resolved = resolve_references({"email": "ssm:/cicd/common/notification/email"})
    assert resolved["email"] == DeferredValue(parameterPath="/cicd/common/notification/email")


def test_plain_values_are_returned_unchanged():
    values = {"branch": "master", "npmTokenParam": "/cicd/common/github/npmtoken", "count": 3}
    resolved = resolve_references(values)
    assert resolved == values
    for key, value in values.items():
        assert resolved[key] is value


def test_resolution_returns_copy_without_mutating_input():
    values = {"repo": "ssm:/cicd/orders/github/repo"}
    resolved = resolve_references(values)
    assert values["repo"] == "ssm:/cicd/orders/github/repo"
    assert resolved is not values


def test_custom_resolver_receives_path_without_prefix():
    seen = []

    def resolve(path: str) -> str:
        seen.append(path)
        return f"handle:{path}"

    resolved = resolve_references({"owner": "ssm:/cicd/common/github/owner", "branch": "main"}, resolve)
    assert seen == ["/cicd/common/github/owner"]
    assert resolved["owner"] == "handle:/cicd/common/github/owner"


def test_nested_structures_are_not_descended_into():
    values = {
        "devStage": {"stackName": "ssm:/cicd/orders/stack"},
        "ssmResourcePaths": ["ssm:/cicd/orders/*"],
    }
    resolved = resolve_references(values)
    assert resolved == values


def test_prefix_must_lead_the_value():
    assert is_indirect("ssm:/a/b")
    assert not is_indirect("/a/b/ssm:")
    assert not is_indirect(None)
    assert not is_indirect(DeferredValue(parameterPath="/a"))
    assert INDIRECTION_PREFIX == "ssm:"


def test_resolver_does_not_validate_paths():
    resolved = resolve_references({"repo": "ssm:"})
    assert resolved["repo"] == DeferredValue(parameterPath="")


def test_resolve_config_replaces_only_indirect_fields():
    config = make_base_config("orders", "main", ssm_root="/cicd")
    resolved = resolve_config(config)

    assert resolved.owner == ssm_parameter("/cicd/common/github/owner")
    assert resolved.repo == ssm_parameter("/cicd/orders/github/repo")
    assert resolved.email == ssm_parameter("/cicd/common/notification/email")
    assert resolved.artifactBucket == ssm_parameter("/cicd/common/lambdaBucket")
    assert resolved.branch == "main"
    assert resolved.npmTokenParam == "/cicd/common/github/npmtoken"
    assert resolved.sourceSecret == SecretValue(secretId="codebuild/github/token")
    # The input config keeps its literal references.
    assert config.owner == "ssm:/cicd/common/github/owner"


def test_resolve_config_is_idempotent():
    config = make_base_config("orders", "main", ssm_root="/cicd")
    once = resolve_config(config)
    twice = resolve_config(once)
    assert twice == once


def test_resolve_config_skips_nested_stage_specs():
    config = make_base_config(
        "orders",
        "main",
        overrides={
            "devStage": DeployStageSpec(stackName="ssm:/cicd/orders/dev-stack"),
            "liveStage": LiveStage(spec=DeployStageSpec(stackName="ssm:/cicd/orders/live-stack")),
        },
        ssm_root="/cicd",
    )
    resolved = resolve_config(config)
    assert resolved.devStage.stackName == "ssm:/cicd/orders/dev-stack"
    assert resolved.liveStage.spec.stackName == "ssm:/cicd/orders/live-stack"


def test_deferred_value_renders_dynamic_reference():
    assert str(ssm_parameter("/cicd/common/lambdaBucket")) == "{{resolve:ssm:/cicd/common/lambdaBucket}}"
    assert str(SecretValue(secretId="codebuild/github/token")) == "{{resolve:secretsmanager:codebuild/github/token}}"
    assert (
        str(SecretValue(secretId="github", jsonField="token"))
        == "{{resolve:secretsmanager:github:SecretString:token}}"
    )
