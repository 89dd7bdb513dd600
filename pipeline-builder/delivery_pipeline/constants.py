# Identifiers shared between stages. Changing any of these changes the
# contract with the build tooling or the deployed stacks.

PIPELINE_NAME_SUFFIX = "Master"

SOURCE_ARTIFACT = "src"
TOOLS_ARTIFACT = "tools"
BUILD_ARTIFACT = "buildOutput"

SOURCE_VARIABLES_NAMESPACE = "SourceVariables"

DEFAULT_BUILD_SPEC = "buildspec.yml"
DEFAULT_DEPLOY_TEMPLATE = "cfn-deploy.yml"
DEFAULT_CHANGE_SET_NAME = "PipelineDeployLiveChangeSet"

BUILD_PROJECT_DESCRIPTION = "Build, test and package to create deploy template"

STAGE_SOURCE = "Source"
STAGE_BUILD = "Build"
STAGE_DEPLOY_DEV = "DeployDev"
STAGE_DEPLOY_LIVE = "DeployLive"

ACTION_SOURCE = "Code"
ACTION_TOOLS = "Tools"
ACTION_BUILD = "Build"
ACTION_DEPLOY_DEV = "DeployDevStack"
ACTION_PREPARE_CHANGES = "PrepareChanges"
ACTION_APPROVE_CHANGES = "ApproveChanges"
ACTION_EXECUTE_CHANGES = "ExecuteChanges"

APPROVAL_INFORMATION = "Review the prepared change set before it is applied to the live stack"

API_STAGE_DEV = "dev"
API_STAGE_LIVE = "live"

DEPLOY_CAPABILITIES = ("CAPABILITY_AUTO_EXPAND", "CAPABILITY_NAMED_IAM")

ENV_COMMIT_ID = "COMMIT_ID"
ENV_COMMIT_BRANCH = "COMMIT_BRANCH"
ENV_NPM_TOKEN_PARAM_KEY = "NPM_TOKEN_PARAM_KEY"
ENV_DEPLOY_TEMPLATE = "SAM_DEPLOY_TEMPLATE"
ENV_PACKAGE_OUTPUT_BUCKET = "PACKAGE_OUTPUT_BUCKET"
