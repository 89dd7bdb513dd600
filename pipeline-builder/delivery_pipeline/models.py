from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from delivery_pipeline.constants import DEFAULT_BUILD_SPEC


class DeferredValue(BaseModel):
    """Parameter-store value that is only known once the pipeline is deployed."""

    model_config = ConfigDict(frozen=True)

    parameterPath: str

    def __str__(self) -> str:
        return f"{{{{resolve:ssm:{self.parameterPath}}}}}"


class SecretValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    secretId: str
    jsonField: Optional[str] = None

    def __str__(self) -> str:
        if self.jsonField:
            return f"{{{{resolve:secretsmanager:{self.secretId}:SecretString:{self.jsonField}}}}}"
        return f"{{{{resolve:secretsmanager:{self.secretId}}}}}"


ConfigValue = Union[DeferredValue, str]


class DeployStageSpec(BaseModel):
    stackName: str
    # None selects the template produced by the build stage.
    templatePath: Optional[str] = None


class NoLiveStage(BaseModel):
    kind: Literal["none"] = "none"


class LiveStage(BaseModel):
    kind: Literal["live"] = "live"
    spec: DeployStageSpec


LiveStageOption = Annotated[Union[NoLiveStage, LiveStage], Field(discriminator="kind")]


class PipelineConfig(BaseModel):
    service: str
    owner: ConfigValue
    repo: ConfigValue
    branch: ConfigValue
    toolsRepo: ConfigValue
    toolsBranch: ConfigValue
    # Plaintext parameter path; the build reads the token itself.
    npmTokenParam: ConfigValue
    email: ConfigValue
    sourceSecret: SecretValue
    artifactBucket: ConfigValue
    buildSpec: ConfigValue = DEFAULT_BUILD_SPEC
    ssmResourcePaths: List[str] = []
    devStage: DeployStageSpec
    liveStage: LiveStageOption = NoLiveStage()

    @field_validator("liveStage", mode="before")
    @classmethod
    def _absent_live_stage(cls, value):
        if value is None:
            return NoLiveStage()
        return value


class Artifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str

    def at_path(self, path: str) -> "ArtifactPath":
        return ArtifactPath(artifact=self, path=path)


class ArtifactPath(BaseModel):
    model_config = ConfigDict(frozen=True)

    artifact: Artifact
    path: str

    def __str__(self) -> str:
        return f"{self.artifact.name}::{self.path}"


class EnvironmentVariableType(str, Enum):
    PLAINTEXT = "PLAINTEXT"
    PARAMETER_STORE = "PARAMETER_STORE"


class EnvironmentVariable(BaseModel):
    value: ConfigValue
    type: EnvironmentVariableType = EnvironmentVariableType.PLAINTEXT


class SourceTrigger(str, Enum):
    WEBHOOK = "WEBHOOK"
    NONE = "NONE"


class PipelineAction(BaseModel):
    name: str
    runOrder: int = 1

    def input_artifacts(self) -> List[Artifact]:
        return []

    def output_artifacts(self) -> List[Artifact]:
        return []


class GitHubSourceAction(PipelineAction):
    actionType: Literal["GitHubSource"] = "GitHubSource"
    owner: ConfigValue
    repo: ConfigValue
    branch: ConfigValue
    oauthToken: SecretValue
    output: Artifact
    trigger: SourceTrigger
    variablesNamespace: Optional[str] = None

    def output_artifacts(self) -> List[Artifact]:
        return [self.output]

    def variable(self, name: str) -> str:
        if not self.variablesNamespace:
            raise ValueError(f"Action {self.name} does not export variables")
        return f"#{{{self.variablesNamespace}.{name}}}"

    @property
    def commit_id(self) -> str:
        return self.variable("CommitId")

    @property
    def branch_name(self) -> str:
        return self.variable("BranchName")


class CodeBuildAction(PipelineAction):
    actionType: Literal["CodeBuild"] = "CodeBuild"
    project: str
    input: Artifact
    extraInputs: List[Artifact] = []
    outputs: List[Artifact] = []
    environmentVariables: Dict[str, EnvironmentVariable] = {}

    def input_artifacts(self) -> List[Artifact]:
        return [self.input, *self.extraInputs]

    def output_artifacts(self) -> List[Artifact]:
        return list(self.outputs)


class CloudFormationCreateUpdateStackAction(PipelineAction):
    actionType: Literal["CloudFormationCreateUpdateStack"] = "CloudFormationCreateUpdateStack"
    stackName: str
    templatePath: ArtifactPath
    capabilities: List[str]
    adminPermissions: bool = False
    replaceOnFailure: bool = False
    parameterOverrides: Dict[str, str] = {}

    def input_artifacts(self) -> List[Artifact]:
        return [self.templatePath.artifact]


class CloudFormationCreateReplaceChangeSetAction(PipelineAction):
    actionType: Literal["CloudFormationCreateReplaceChangeSet"] = "CloudFormationCreateReplaceChangeSet"
    stackName: str
    changeSetName: str
    templatePath: ArtifactPath
    capabilities: List[str]
    adminPermissions: bool = False
    parameterOverrides: Dict[str, str] = {}

    def input_artifacts(self) -> List[Artifact]:
        return [self.templatePath.artifact]


class ManualApprovalAction(PipelineAction):
    actionType: Literal["ManualApproval"] = "ManualApproval"
    notifyEmails: List[ConfigValue]
    additionalInformation: Optional[str] = None


class CloudFormationExecuteChangeSetAction(PipelineAction):
    actionType: Literal["CloudFormationExecuteChangeSet"] = "CloudFormationExecuteChangeSet"
    stackName: str
    changeSetName: str


Action = Annotated[
    Union[
        GitHubSourceAction,
        CodeBuildAction,
        CloudFormationCreateUpdateStackAction,
        CloudFormationCreateReplaceChangeSetAction,
        ManualApprovalAction,
        CloudFormationExecuteChangeSetAction,
    ],
    Field(discriminator="actionType"),
]


class Stage(BaseModel):
    name: str
    actions: List[Action]

    def action(self, name: str) -> PipelineAction:
        for action in self.actions:
            if action.name == name:
                return action
        raise KeyError(name)


class PolicyEffect(str, Enum):
    ALLOW = "Allow"


class PolicyStatement(BaseModel):
    model_config = ConfigDict(frozen=True)

    effect: PolicyEffect = PolicyEffect.ALLOW
    actions: List[str]
    resources: List[str]


class BuildProject(BaseModel):
    name: str
    description: str
    buildImage: str
    computeType: str
    buildSpec: ConfigValue
    policyStatements: List[PolicyStatement] = []


class PipelineBlueprint(BaseModel):
    pipelineName: str
    restartExecutionOnUpdate: bool = True
    stages: List[Stage]
    buildProject: BuildProject

    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def stage(self, name: str) -> Stage:
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(name)
