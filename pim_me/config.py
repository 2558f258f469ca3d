# ============================================================================
# CONFIG - Quick roles (favourites) storage
# ============================================================================
# Load precedence, first populated source wins:
#   1. PIM_QUICK_ROLES environment variable (JSON array or full config object)
#   2. .pim-me-mcp.json in the current working directory
#   3. .pim-me-mcp.json in the home directory
# Saves always go to the home directory file. Nothing is cached: every load
# reads the environment and the files again.
# ============================================================================

import json
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import ValidationError

from .models import QuickRolesConfig, RoleReference, SaveResult
from .utils import (
    CONFIG_FILE_NAME, CONFIG_KEY,
    ENV_DEFAULT_JUSTIFICATION, ENV_QUICK_ROLES, ENV_QUICK_ROLES_DESC
)

logger = logging.getLogger(__name__)


class QuickRolesStore:
    """Reads and writes QuickRolesConfig; environment and directories are injectable."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
        home: Optional[Path] = None
    ):
        self._environ = environ
        self._cwd = cwd
        self._home = home

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    @property
    def config_path(self) -> Path:
        home = Path.home() if self._home is None else Path(self._home)
        return home / CONFIG_FILE_NAME

    @property
    def local_config_path(self) -> Path:
        cwd = Path.cwd() if self._cwd is None else Path(self._cwd)
        return cwd / CONFIG_FILE_NAME

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self) -> Optional[QuickRolesConfig]:
        """Returns the first configured QuickRolesConfig, or None."""
        config = self._load_from_env()
        if config is not None:
            return config

        for path in (self.local_config_path, self.config_path):
            config = self._load_from_file(path)
            if config is not None:
                return config
        return None

    def _load_from_env(self) -> Optional[QuickRolesConfig]:
        raw = self.environ.get(ENV_QUICK_ROLES)
        if not raw:
            return None

        try:
            parsed = json.loads(raw)
            if isinstance(parsed, list):
                return QuickRolesConfig(
                    roles=parsed,
                    description=self.environ.get(ENV_QUICK_ROLES_DESC),
                    default_justification=self.environ.get(ENV_DEFAULT_JUSTIFICATION),
                )
            return QuickRolesConfig.model_validate(parsed)
        except json.JSONDecodeError:
            logger.warning("%s is not valid JSON, ignoring.", ENV_QUICK_ROLES)
        except ValidationError as e:
            logger.warning("%s does not describe quick roles, ignoring: %s", ENV_QUICK_ROLES, e)
        return None

    def _load_from_file(self, path: Path) -> Optional[QuickRolesConfig]:
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to parse %s, ignoring: %s", path, e)
            return None

        if not isinstance(data, dict) or not data.get(CONFIG_KEY):
            return None

        try:
            return QuickRolesConfig.model_validate(data[CONFIG_KEY])
        except ValidationError as e:
            logger.warning("Invalid %s in %s, ignoring: %s", CONFIG_KEY, path, e)
            return None

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, config: QuickRolesConfig) -> SaveResult:
        """Writes config under the quickRoles key of the home file, keeping other keys."""
        path = self.config_path

        existing = {}
        if path.exists():
            try:
                existing = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                logger.warning("Existing %s is unreadable, starting fresh.", path)
            if not isinstance(existing, dict):
                existing = {}

        existing[CONFIG_KEY] = config.model_dump(by_alias=True, exclude_none=True)

        try:
            path.write_text(json.dumps(existing, indent=2), encoding="utf-8")
        except OSError as e:
            return SaveResult(success=False, path=str(path), error=str(e))

        logger.info("Saved %d quick role(s) to %s", len(config.roles), path)
        return SaveResult(success=True, path=str(path))


# ============================================================================
# Module-level helpers bound to the default store
# ============================================================================

def get_config_path() -> str:
    """Path of the home directory config file."""
    return str(QuickRolesStore().config_path)


def load_quick_roles_config() -> Optional[QuickRolesConfig]:
    return QuickRolesStore().load()


def save_quick_roles_config(
    roles: list[RoleReference],
    description: str = None,
    default_justification: str = None
) -> SaveResult:
    config = QuickRolesConfig(
        roles=roles,
        description=description,
        default_justification=default_justification,
    )
    return QuickRolesStore().save(config)
