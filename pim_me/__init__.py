"""Azure PIM role listing and activation, as an MCP server and a small library."""

__version__ = "1.1.0"

from pim_me.activation import activate_quick_roles, activate_roles
from pim_me.config import (
    QuickRolesStore, get_config_path, load_quick_roles_config, save_quick_roles_config
)
from pim_me.errors import ConfigurationError, PimError
from pim_me.matching import ExactMatcher, RoleMatcher, SubstringMatcher
from pim_me.models import (
    ActivationOutcome, ActiveRole, EligibleRole, ListRolesResult, QuickRolesConfig, RoleReference
)
from pim_me.roles import list_active_roles, list_eligible_roles

__all__ = [
    "__version__",
    "list_eligible_roles", "list_active_roles", "activate_roles", "activate_quick_roles",
    "QuickRolesStore", "get_config_path", "load_quick_roles_config", "save_quick_roles_config",
    "RoleMatcher", "SubstringMatcher", "ExactMatcher",
    "RoleReference", "EligibleRole", "ActiveRole", "ListRolesResult",
    "QuickRolesConfig", "ActivationOutcome",
    "PimError", "ConfigurationError",
]
