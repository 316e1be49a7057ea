"""Placeholder substitution for provisioned CI/CD templates.

Templates mark substitution points with `[[UPPER_SNAKE_CASE]]` tokens.
Every recognised token is replaced in a single pass with a value derived
from the repository's ConfigurationRecord; unrecognised tokens are left
verbatim. No expansion contains a token, so output is never re-scanned.

Rendering is pure: the same template and record always produce the same
text, and missing optional fields (runner labels, trigger branches) render
as the emptiest valid value instead of raising.
"""

import re
from typing import Optional

from provisioner.configs.schemas import ConfigurationRecord, default_configuration

PLACEHOLDER_PATTERN = re.compile(r"\[\[([A-Z][A-Z0-9_]*)\]\]")

PROJECT_NAME_TOKEN = "YOUR_PROJECT_NAME"
DYNAMIC_CONFIG_TOKEN = "[[DYNAMIC_CONFIG]]"

# Build defaults per technology, emitted as KEY="value" lines.
DYNAMIC_CONFIG_BY_TECHNOLOGY: dict[str, tuple[tuple[str, str], ...]] = {
    "python": (
        ("PYTHON_VERSION", "3.10"),
        ("PYTHON_DIST_DIR", "./"),
    ),
    "maven": (
        ("JAVA_VERSION", "8"),
        ("JAVA_DIST_DIR", "target/"),
        ("JAVA_DISTRIBUTION", "temurin"),
    ),
    "node": (
        ("NODE_VERSION", "18"),
        ("NODE_DIST_DIR", "dist/"),
    ),
}


def _flag(value: bool) -> str:
    return "true" if value else "false"


def render_runs_on(config: ConfigurationRecord) -> str:
    """Value for `runs-on:`."""
    runner = config.runner
    if not runner.self_hosted:
        return "ubuntu-latest"
    if not runner.labels:
        return "[self-hosted]"
    return f"[self-hosted, {', '.join(runner.labels)}]"


def render_triggers(config: ConfigurationRecord) -> str:
    """Body of the workflow's `on:` block.

    Blocks are always emitted in the order workflow_dispatch, push,
    schedule, pull_request, whatever order the stored record uses.
    """
    triggers = config.triggers
    lines: list[str] = []

    if triggers.workflow_dispatch:
        lines.append("workflow_dispatch:")

    if triggers.push.active:
        lines.append("  push:")
        lines.extend(_branch_lines(triggers.push.branch_list()))

    if triggers.schedule.active:
        lines.append("  schedule:")
        lines.append(f"    - cron: '{triggers.schedule.cron}'")

    if triggers.pull_request.active:
        lines.append("  pull_request:")
        lines.extend(_branch_lines(triggers.pull_request.branch_list()))

    return "\n".join(lines)


def _branch_lines(branches: list[str]) -> list[str]:
    if not branches:
        return []
    return ["    branches:"] + [f"      - {branch}" for branch in branches]


def render_dynamic_config(config: ConfigurationRecord) -> str:
    """Technology-specific build settings; empty for unknown technologies."""
    entries = DYNAMIC_CONFIG_BY_TECHNOLOGY.get(config.technology, ())
    return "".join(f'{key}="{value}"\n' for key, value in entries)


def placeholder_values(config: ConfigurationRecord) -> dict[str, str]:
    """Map every recognised placeholder name to its expansion."""
    return {
        "WORKFLOW_NAME": f"{config.technology} Build and Deploy Workflow",
        "ON_TRIGGERS": render_triggers(config),
        "RUNS_ON_CONFIG": render_runs_on(config),
        "TECHNOLOGY": config.technology,
        "MESSAGING_APP": f"'{config.notify}'",
        "DOCKER_ENABLED": _flag(config.docker),
        "SELF_HOSTED_RUNNER_ENABLED": _flag(config.runner.self_hosted),
        "DEPLOYMENT_TYPE": config.deploy,
        "DYNAMIC_CONFIG": render_dynamic_config(config),
    }


def render(template: str, config: ConfigurationRecord) -> str:
    """Substitute every recognised `[[TOKEN]]` in `template`."""
    values = placeholder_values(config)

    def _replace(match: re.Match) -> str:
        return values.get(match.group(1), match.group(0))

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def finalize_primary_document(
    content: str,
    repo_name: str,
    config: Optional[ConfigurationRecord],
) -> str:
    """Post-pass for the primary workflow configuration document.

    Applied whether or not the repository has a stored record: the project
    name is always filled in, and a `[[DYNAMIC_CONFIG]]` token still left in
    the content is expanded against `config`, or against the default record
    (which expands to nothing) when there is none.
    """
    content = content.replace(PROJECT_NAME_TOKEN, repo_name)
    dynamic = render_dynamic_config(config or default_configuration())
    return content.replace(DYNAMIC_CONFIG_TOKEN, dynamic)
