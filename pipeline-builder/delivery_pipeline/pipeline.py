"""Top-level blueprint construction.

``PipelineBuilder.build`` is a single synchronous pass:

1. validate the configuration (pydantic schema plus deploy stage checks)
2. replace ``ssm:`` references with deferred parameter handles
3. derive the build project's role policy
4. assemble Source, Build, DeployDev and the optional DeployLive stage

Any ``ConfigurationError`` aborts the build; no partial blueprint is returned.
"""

from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from delivery_pipeline import constants
from delivery_pipeline.config import SETTINGS
from delivery_pipeline.errors import ConfigurationError
from delivery_pipeline.models import (
    BuildProject,
    DeployStageSpec,
    LiveStage,
    PipelineBlueprint,
    PipelineConfig,
    SecretValue,
)
from delivery_pipeline.observability import log_event, pipeline_scope
from delivery_pipeline.policy import DeploymentContext, build_policy_statements
from delivery_pipeline.references import INDIRECTION_PREFIX, Resolver, is_indirect, resolve_config, ssm_parameter
from delivery_pipeline.stages import StageAssembler, effective_template_path


def pipeline_name(service: str) -> str:
    return f"{service}{constants.PIPELINE_NAME_SUFFIX}"


def make_base_config(
    service: str,
    branch: str,
    overrides: Optional[Mapping[str, Any]] = None,
    ssm_root: Optional[str] = None,
    tools_repo: Optional[str] = None,
    source_secret_id: Optional[str] = None,
) -> PipelineConfig:
    """
    Default configuration for a service following the shared parameter layout.

    Values kept in the parameter store are returned as ``ssm:`` references and
    are left for ``PipelineBuilder`` to resolve. ``overrides`` replaces
    top-level keys; ``liveStage=None`` drops the gated stage.

    ``ssm_root``, ``tools_repo`` and ``source_secret_id`` fall back to
    ``SETTINGS``, so with those left unset the result follows the process
    environment. Pass them explicitly for an environment-independent config.
    """
    root = (ssm_root if ssm_root is not None else SETTINGS.ssm_root).rstrip("/")
    tools_repo = tools_repo if tools_repo is not None else SETTINGS.tools_repo
    source_secret_id = source_secret_id if source_secret_id is not None else SETTINGS.source_secret_id
    values = {
        "service": service,
        "branch": branch,
        "toolsBranch": branch,
        "toolsRepo": tools_repo,
        "email": f"{INDIRECTION_PREFIX}{root}/common/notification/email",
        "repo": f"{INDIRECTION_PREFIX}{root}/{service}/github/repo",
        "owner": f"{INDIRECTION_PREFIX}{root}/common/github/owner",
        "npmTokenParam": f"{root}/common/github/npmtoken",
        "sourceSecret": SecretValue(secretId=source_secret_id),
        "artifactBucket": f"{INDIRECTION_PREFIX}{root}/common/lambdaBucket",
        "devStage": DeployStageSpec(stackName=f"{service}-dev"),
        "liveStage": LiveStage(spec=DeployStageSpec(stackName=f"{service}-live")),
        "ssmResourcePaths": [f"{root}/{scope}/*" for scope in (service, "common")],
    }
    values.update(overrides or {})
    return _validate(values)


def _validate(config: Union[PipelineConfig, Mapping[str, Any]]) -> PipelineConfig:
    if isinstance(config, PipelineConfig):
        return config
    try:
        return PipelineConfig.model_validate(dict(config))
    except ValidationError as exc:
        log_event("pipeline_config_rejected", errors=exc.error_count())
        raise ConfigurationError("INVALID_CONFIG", str(exc)) from exc


class PipelineBuilder:
    def __init__(self, context: DeploymentContext, resolve: Resolver = ssm_parameter) -> None:
        self.context = context
        self.resolve = resolve

    def validate(self, config: Union[PipelineConfig, Mapping[str, Any]]) -> PipelineConfig:
        config = _validate(config)
        if not config.service.strip():
            raise ConfigurationError("SERVICE_NAME_EMPTY", "service must be a non-empty string")
        if is_indirect(config.service):
            # Names the pipeline and build project at construction time.
            raise ConfigurationError(
                "SERVICE_NAME_INDIRECT",
                "service must be a literal name, not a parameter-store reference",
            )
        if not self.context.account or not self.context.region:
            raise ConfigurationError("CONTEXT_INCOMPLETE", "Deployment context requires account and region")

        deploy_specs = [(constants.STAGE_DEPLOY_DEV, config.devStage)]
        if isinstance(config.liveStage, LiveStage):
            deploy_specs.append((constants.STAGE_DEPLOY_LIVE, config.liveStage.spec))
        for stage_name, spec in deploy_specs:
            if not spec.stackName.strip():
                raise ConfigurationError("STACK_NAME_EMPTY", f"{stage_name} requires a stack name")
            effective_template_path(spec, stage_name)
        return config

    def build_project(self, config: PipelineConfig) -> BuildProject:
        return BuildProject(
            name=config.service,
            description=constants.BUILD_PROJECT_DESCRIPTION,
            buildImage=SETTINGS.build_image,
            computeType=SETTINGS.compute_type,
            buildSpec=config.buildSpec,
            policyStatements=build_policy_statements(
                config.ssmResourcePaths,
                config.artifactBucket,
                self.context,
            ),
        )

    def build(self, config: Union[PipelineConfig, Mapping[str, Any]]) -> PipelineBlueprint:
        config = self.validate(config)
        name = pipeline_name(config.service)
        with pipeline_scope(name):
            resolved = resolve_config(config, self.resolve)
            log_event(
                "pipeline_config_resolved",
                deferred=sorted(
                    key
                    for key in type(config).model_fields
                    if getattr(resolved, key) is not getattr(config, key)
                ),
            )
            project = self.build_project(resolved)
            stages = StageAssembler(resolved, project).assemble()
            blueprint = PipelineBlueprint(
                pipelineName=name,
                restartExecutionOnUpdate=True,
                stages=stages,
                buildProject=project,
            )
            log_event(
                "pipeline_blueprint_built",
                stages=blueprint.stage_names(),
                policy_statements=len(project.policyStatements),
                account=self.context.account,
                region=self.context.region,
            )
        return blueprint


def build_pipeline(
    config: Union[PipelineConfig, Mapping[str, Any]],
    context: DeploymentContext,
    resolve: Resolver = ssm_parameter,
) -> PipelineBlueprint:
    return PipelineBuilder(context, resolve).build(config)
