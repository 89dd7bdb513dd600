from typing import List, Optional

from delivery_pipeline import constants
from delivery_pipeline.errors import ConfigurationError
from delivery_pipeline.models import (
    Artifact,
    BuildProject,
    CloudFormationCreateReplaceChangeSetAction,
    CloudFormationCreateUpdateStackAction,
    CloudFormationExecuteChangeSetAction,
    CodeBuildAction,
    DeployStageSpec,
    EnvironmentVariable,
    EnvironmentVariableType,
    GitHubSourceAction,
    LiveStage,
    ManualApprovalAction,
    NoLiveStage,
    PipelineConfig,
    SourceTrigger,
    Stage,
)
from delivery_pipeline.observability import log_event


def effective_template_path(spec: DeployStageSpec, stage_name: str) -> str:
    template = constants.DEFAULT_DEPLOY_TEMPLATE if spec.templatePath is None else spec.templatePath
    if not template or not template.strip():
        raise ConfigurationError(
            "TEMPLATE_PATH_EMPTY",
            f"{stage_name} requires a deploy template path",
        )
    return template


def commit_info(source: GitHubSourceAction) -> str:
    return f"{source.branch_name}_{source.commit_id}"


class StageAssembler:
    def __init__(self, config: PipelineConfig, build_project: BuildProject) -> None:
        self.config = config
        self.build_project = build_project
        self.source_output = Artifact(name=constants.SOURCE_ARTIFACT)
        self.tools_output = Artifact(name=constants.TOOLS_ARTIFACT)
        self.build_output = Artifact(name=constants.BUILD_ARTIFACT)

    def assemble(self) -> List[Stage]:
        # Both template paths are checked before any stage is built.
        dev_template = effective_template_path(self.config.devStage, constants.STAGE_DEPLOY_DEV)
        live_template = self._live_template()

        source_stage = self.source_stage()
        source = source_stage.action(constants.ACTION_SOURCE)
        stages = [
            source_stage,
            self.build_stage(source),
            self.deploy_dev_stage(source, dev_template),
        ]
        if live_template is not None:
            stages.append(self.deploy_live_stage(source, live_template))
        else:
            log_event("pipeline_live_stage_skipped", service=self.config.service)

        for stage in stages:
            log_event(
                "pipeline_stage_assembled",
                stage=stage.name,
                actions=[action.name for action in stage.actions],
            )
        return stages

    def _live_template(self) -> Optional[str]:
        live = self.config.liveStage
        if isinstance(live, NoLiveStage):
            return None
        if isinstance(live, LiveStage):
            return effective_template_path(live.spec, constants.STAGE_DEPLOY_LIVE)
        raise ConfigurationError("INVALID_CONFIG", f"Unsupported live stage option: {live!r}")

    def source_action(self) -> GitHubSourceAction:
        return GitHubSourceAction(
            name=constants.ACTION_SOURCE,
            owner=self.config.owner,
            repo=self.config.repo,
            branch=self.config.branch,
            oauthToken=self.config.sourceSecret,
            output=self.source_output,
            trigger=SourceTrigger.WEBHOOK,
            variablesNamespace=constants.SOURCE_VARIABLES_NAMESPACE,
        )

    def tools_action(self) -> GitHubSourceAction:
        return GitHubSourceAction(
            name=constants.ACTION_TOOLS,
            owner=self.config.owner,
            repo=self.config.toolsRepo,
            branch=self.config.toolsBranch,
            oauthToken=self.config.sourceSecret,
            output=self.tools_output,
            trigger=SourceTrigger.NONE,
        )

    def source_stage(self) -> Stage:
        return Stage(
            name=constants.STAGE_SOURCE,
            actions=[self.source_action(), self.tools_action()],
        )

    def build_stage(self, source: GitHubSourceAction) -> Stage:
        # Consumed by the build tooling; all five must be present.
        variables = {
            constants.ENV_COMMIT_ID: EnvironmentVariable(value=source.commit_id),
            constants.ENV_COMMIT_BRANCH: EnvironmentVariable(value=source.branch_name),
            constants.ENV_NPM_TOKEN_PARAM_KEY: EnvironmentVariable(
                value=self.config.npmTokenParam,
                type=EnvironmentVariableType.PLAINTEXT,
            ),
            constants.ENV_DEPLOY_TEMPLATE: EnvironmentVariable(value=constants.DEFAULT_DEPLOY_TEMPLATE),
            constants.ENV_PACKAGE_OUTPUT_BUCKET: EnvironmentVariable(value=self.config.artifactBucket),
        }
        action = CodeBuildAction(
            name=constants.ACTION_BUILD,
            project=self.build_project.name,
            input=self.source_output,
            extraInputs=[self.tools_output],
            outputs=[self.build_output],
            environmentVariables=variables,
        )
        return Stage(name=constants.STAGE_BUILD, actions=[action])

    def deploy_dev_stage(self, source: GitHubSourceAction, template: Optional[str] = None) -> Stage:
        if template is None:
            template = effective_template_path(self.config.devStage, constants.STAGE_DEPLOY_DEV)
        deploy = CloudFormationCreateUpdateStackAction(
            name=constants.ACTION_DEPLOY_DEV,
            stackName=self.config.devStage.stackName,
            templatePath=self.build_output.at_path(template),
            capabilities=list(constants.DEPLOY_CAPABILITIES),
            adminPermissions=True,
            replaceOnFailure=True,
            parameterOverrides={
                "ApiStage": constants.API_STAGE_DEV,
                "CommitInfo": commit_info(source),
            },
        )
        return Stage(name=constants.STAGE_DEPLOY_DEV, actions=[deploy])

    def deploy_live_stage(self, source: GitHubSourceAction, template: Optional[str] = None) -> Stage:
        live = self.config.liveStage
        if not isinstance(live, LiveStage):
            raise ConfigurationError("INVALID_CONFIG", "DeployLive requires a live stage configuration")
        if template is None:
            template = effective_template_path(live.spec, constants.STAGE_DEPLOY_LIVE)
        stack_name = live.spec.stackName

        prepare = CloudFormationCreateReplaceChangeSetAction(
            name=constants.ACTION_PREPARE_CHANGES,
            stackName=stack_name,
            changeSetName=constants.DEFAULT_CHANGE_SET_NAME,
            templatePath=self.build_output.at_path(template),
            capabilities=list(constants.DEPLOY_CAPABILITIES),
            adminPermissions=True,
            parameterOverrides={
                "ApiStage": constants.API_STAGE_LIVE,
                "CommitInfo": commit_info(source),
            },
            runOrder=1,
        )
        approve = ManualApprovalAction(
            name=constants.ACTION_APPROVE_CHANGES,
            notifyEmails=[self.config.email],
            additionalInformation=constants.APPROVAL_INFORMATION,
            runOrder=2,
        )
        execute = CloudFormationExecuteChangeSetAction(
            name=constants.ACTION_EXECUTE_CHANGES,
            stackName=stack_name,
            changeSetName=constants.DEFAULT_CHANGE_SET_NAME,
            runOrder=3,
        )
        log_event(
            "pipeline_change_set_declared",
            stack=stack_name,
            change_set=constants.DEFAULT_CHANGE_SET_NAME,
        )
        return Stage(name=constants.STAGE_DEPLOY_LIVE, actions=[prepare, approve, execute])
