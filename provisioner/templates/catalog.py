"""The fixed set of files written into every onboarded repository."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProvisionedFile:
    path: str  # path inside the target repository
    template: str  # file name in the template source
    templated: bool = False  # rendered against the repository's configuration
    primary: bool = False  # gets the project name / dynamic config post-pass

    @property
    def commit_message(self) -> str:
        return f"Add {self.path}"


WORKFLOW_FILE = ProvisionedFile(
    path=".github/workflows/build-and-deploy.yml",
    template="build-and-deploy.yml",
    templated=True,
)

WORKFLOW_CONFIG_FILE = ProvisionedFile(
    path=".github/workflow-config.env",
    template="workflow-config.env",
    templated=True,
    primary=True,
)

SONAR_FILE = ProvisionedFile(
    path="sonar-project.properties",
    template="sonar-project.properties",
)

README_FILE = ProvisionedFile(
    path="README.md",
    template="README.md",
)

PROVISIONED_FILES: tuple[ProvisionedFile, ...] = (
    WORKFLOW_FILE,
    WORKFLOW_CONFIG_FILE,
    SONAR_FILE,
    README_FILE,
)
