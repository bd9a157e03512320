# The name of the project
PROJECT_NAME = "ecr-ensure"

# Default config file looked up in the current directory
DEFAULT_CONFIG_FILE = "./ecr-ensure.yaml"

# The environment variable for the repository name
REPOSITORY_NAME_ENV_VAR = "REPOSITORY_NAME"

# The environment variables for the target region, in lookup order
REGION_ENV_VARS = ("AWS_REGION", "AWS_DEFAULT_REGION")

# The file GitHub Actions reads step outputs from
GITHUB_OUTPUT_ENV_VAR = "GITHUB_OUTPUT"

# Output keys
REPOSITORY_EXISTS_OUTPUT = "repository-exists"
REPOSITORY_URI_OUTPUT = "repository-uri"

# Exit codes per failure class
EXIT_UNKNOWN = 1
EXIT_PERMISSION_DENIED = 3
EXIT_VALIDATION = 4
