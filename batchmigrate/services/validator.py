"""Filesystem checks for migration configurations."""

import logging
import os
from typing import List

from ..exceptions import ConfigurationError
from ..models.config import MigrationConfig

logger = logging.getLogger(__name__)


class ConfigValidator:
    """
    Checks a parsed configuration against the filesystem before any I/O.

    Field-level rules live on the pydantic models; this covers what can only
    be known by looking at paths on disk.
    """

    def validate(self, config: MigrationConfig) -> List[str]:
        """
        Validate file paths referenced by a configuration.

        Args:
            config: Parsed migration configuration

        Returns:
            List of problems, empty if the configuration is usable
        """
        problems = []

        source = config.source.file
        if source is not None:
            if not os.path.exists(source.path):
                problems.append(f"Source file does not exist: {source.path}")
            elif os.path.isdir(source.path):
                problems.append(f"Source file is a directory: {source.path}")

        target = config.target.file
        if target is not None:
            if os.path.isdir(target.path):
                problems.append(f"Target file is a directory: {target.path}")
            else:
                parent = os.path.dirname(os.path.abspath(target.path))
                if not os.path.isdir(parent):
                    problems.append(f"Target directory does not exist: {parent}")

        for problem in problems:
            logger.warning(problem)
        return problems

    def validate_or_raise(self, config: MigrationConfig) -> None:
        """
        Raises:
            ConfigurationError: Listing every problem found
        """
        problems = self.validate(config)
        if problems:
            raise ConfigurationError("; ".join(problems))
