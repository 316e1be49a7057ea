"""Configuration resolver.

Looks up the stored CI/CD configuration for one repository. A missing row
is a normal outcome (the repository is provisioned with the stock
templates); only a failure of the lookup itself is an error.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from provisioner.configs.schemas import ConfigurationRecord, parse_configuration
from provisioner.db.models import RepositoryConfig

logger = logging.getLogger(__name__)


class StoreUnavailable(Exception):
    """The configuration store could not answer a lookup."""


class ConfigurationResolver:
    """Single point lookups against the `repository_configs` table.

    One attempt per call: no caching, no retries.
    """

    def __init__(self, db: AsyncSession, *, strict: bool = False) -> None:
        self._db = db
        self._strict = strict

    async def resolve(self, full_name: str) -> Optional[ConfigurationRecord]:
        """Return the record stored under `full_name`, or None.

        Raises:
            StoreUnavailable: the lookup itself failed.
            MalformedConfiguration: strict mode only, the row does not validate.
        """
        try:
            result = await self._db.execute(
                select(RepositoryConfig.config).where(
                    RepositoryConfig.full_name == full_name
                )
            )
            row = result.one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(
                f"configuration lookup for {full_name} failed: {exc}"
            ) from exc

        if row is None:
            logger.debug("No stored configuration for %s", full_name)
            return None

        return parse_configuration(row.config, strict=self._strict)
