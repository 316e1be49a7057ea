"""Provisioning workflow for onboarded repositories.

For each repository named by a webhook delivery:

1. Resolve its stored configuration (once)
2. For each catalog file: skip it if the repository already has it,
   otherwise render it and commit it
3. Once every repository has been handled, uninstall the App

This layer is the boundary between the pure renderer and the GitHub API.
Failures are contained per file: one rejected commit never stops the
remaining files or repositories.
"""

import logging
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from provisioner.configs.resolver import ConfigurationResolver, StoreUnavailable
from provisioner.configs.schemas import ConfigurationRecord, MalformedConfiguration
from provisioner.core.config import Settings
from provisioner.github import client as github_client
from provisioner.github.schemas import RepositoryProvisionResult
from provisioner.github.webhooks import ProvisioningRequest, TargetRepository
from provisioner.templates.catalog import PROVISIONED_FILES, ProvisionedFile
from provisioner.templates.renderer import finalize_primary_document, render
from provisioner.templates.source import TemplateSource, get_template_source

logger = logging.getLogger(__name__)


def build_file_content(
    entry: ProvisionedFile,
    raw: str,
    config: Optional[ConfigurationRecord],
    repo_name: str,
) -> str:
    """Final content of one catalog file for one repository.

    Templates are only rendered when the repository has a stored record;
    otherwise the raw template is committed as-is. The primary document
    always gets the project name and dynamic-config post-pass.
    """
    content = raw
    if entry.templated and config is not None:
        content = render(content, config)
    if entry.primary:
        content = finalize_primary_document(content, repo_name, config)
    return content


async def resolve_or_default(
    resolver: ConfigurationResolver, full_name: str
) -> Optional[ConfigurationRecord]:
    """Resolve a record, treating store and validation failures as "none"."""
    try:
        return await resolver.resolve(full_name)
    except StoreUnavailable as exc:
        logger.warning(
            "Configuration store unavailable for %s, using defaults: %s",
            full_name, exc,
        )
    except MalformedConfiguration as exc:
        logger.warning(
            "Rejected stored configuration for %s, using defaults: %s",
            full_name, exc,
        )
    return None


async def provision_repository(
    token: str,
    target: TargetRepository,
    resolver: ConfigurationResolver,
    templates: TemplateSource,
    branch: Optional[str] = None,
) -> RepositoryProvisionResult:
    """Commit every missing catalog file into one repository."""
    config = await resolve_or_default(resolver, target.full_name)
    result = RepositoryProvisionResult(
        full_name=target.full_name,
        customized=config is not None,
    )

    for entry in PROVISIONED_FILES:
        try:
            existing = await github_client.get_file_content(
                token, target.owner, target.name, entry.path, ref=branch
            )
            if existing is not None:
                logger.info("%s already has %s, skipping", target.full_name, entry.path)
                result.skipped.append(entry.path)
                continue

            content = build_file_content(
                entry, templates.read(entry.template), config, target.name
            )
            await github_client.put_file_content(
                token,
                target.owner,
                target.name,
                entry.path,
                entry.commit_message,
                content,
                branch=branch,
            )
        except httpx.HTTPStatusError as exc:
            logger.error(
                "GitHub API error provisioning %s in %s: %s %s",
                entry.path, target.full_name,
                exc.response.status_code, exc.response.text[:200],
            )
            result.failed.append(entry.path)
            continue
        except (httpx.HTTPError, OSError, ValueError) as exc:
            logger.error(
                "Could not provision %s in %s: %s: %s",
                entry.path, target.full_name, type(exc).__name__, exc,
            )
            result.failed.append(entry.path)
            continue

        logger.info("Committed %s to %s", entry.path, target.full_name)
        result.created.append(entry.path)

    return result


async def uninstall(installation_id: int) -> bool:
    """Delete the App installation. Returns False (and logs) on failure."""
    try:
        await github_client.delete_installation(installation_id)
    except httpx.HTTPError as exc:
        logger.error("Failed to uninstall installation %d: %s", installation_id, exc)
        return False
    logger.info("Uninstalled installation %d", installation_id)
    return True


async def provision_installation(
    db: AsyncSession,
    request: ProvisioningRequest,
    settings: Settings,
) -> tuple[list[RepositoryProvisionResult], bool]:
    """Provision every repository of a delivery, then uninstall the App.

    Raises `httpx.HTTPError` if the installation token cannot be obtained;
    nothing has been written at that point.

    Returns the per-repository results and whether the App was uninstalled.
    """
    token = await github_client.get_installation_token(request.installation_id)

    resolver = ConfigurationResolver(db, strict=settings.strict_config_validation)
    templates = get_template_source(settings.template_dir)
    branch = settings.commit_branch or None

    results = []
    for target in request.repositories:
        results.append(
            await provision_repository(token, target, resolver, templates, branch)
        )

    logger.info(
        "Installation %d: provisioned %d repositories",
        request.installation_id, len(results),
    )

    uninstalled = False
    if settings.uninstall_after_provisioning:
        uninstalled = await uninstall(request.installation_id)

    return results, uninstalled
