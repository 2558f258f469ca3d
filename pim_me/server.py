# ============================================================================
# MCP SERVER - Tool definitions only
# ============================================================================
# All business logic is in separate modules:
#   - tools.py      : Text responses for each tool
#   - activation.py : Request building, submission and batch activation
#   - roles.py      : Eligible / active role listing
#   - matching.py   : Role reference matching
#   - identity.py   : Signed-in user lookup
#   - config.py     : Quick roles storage
#   - utils.py      : Shared helpers and constants
# ============================================================================

import logging
import os
import sys

from mcp.server.fastmcp import FastMCP

# Import function modules - handle both package and direct execution
try:
    from . import tools
    from .utils import DEFAULT_DURATION_HOURS, ENV_LOG_LEVEL
except ImportError:
    from pim_me import tools
    from pim_me.utils import DEFAULT_DURATION_HOURS, ENV_LOG_LEVEL

logger = logging.getLogger(__name__)

# ============================================================================
# MCP SERVER INITIALIZATION
# ============================================================================

mcp = FastMCP("pim-me-mcp")

# ============================================================================
# PIM TOOLS - Quick roles
# ============================================================================

@mcp.tool()
def activate_quick_roles(justification: str = None, duration: float = DEFAULT_DURATION_HOURS) -> str:
    """
    Activates your saved quick roles (favorites) for fast elevation.

    Configure your quick roles first using list_quick_roles and save_quick_roles.
    Reads the latest config each time, so no server reload is needed after changes.

    Args:
        justification: The business justification for activating these roles.
            Optional if a default justification is configured.
        duration: Duration in hours for the role activation. Default is 8 hours.

    Returns:
        JSON with success, activatedRoles, failedRoles and message
    """
    return tools.activate_quick_roles(justification, duration)


@mcp.tool()
def list_quick_roles() -> str:
    """
    Lists all eligible PIM roles with indices and shows your currently saved quick roles.

    Use this to see available roles, then call save_quick_roles with your selected
    indices to update your favorites.
    """
    return tools.list_quick_roles()


@mcp.tool()
def get_quick_roles() -> str:
    """
    Same as list_quick_roles: numbered eligible PIM roles plus your saved quick roles.
    """
    return tools.list_quick_roles()


@mcp.tool()
def save_quick_roles(indices: list[int], description: str = None, defaultJustification: str = None) -> str:
    """
    Saves your selected roles as quick roles for fast activation.

    Use the indices from list_quick_roles to specify which roles to save.

    Args:
        indices: Array of role indices from list_quick_roles to save as your quick roles.
        description: Optional description for your quick roles set
            (e.g., 'My daily development roles').
        defaultJustification: Optional default justification to use when activating
            quick roles (e.g., 'Development work'). If set, you won't need to provide
            a justification each time.

    Returns:
        Confirmation with the saved roles and the config file path
    """
    return tools.save_quick_roles(indices, description, defaultJustification)


# ============================================================================
# PIM TOOLS - Listing & activation
# ============================================================================

@mcp.tool()
def list_eligible_roles() -> str:
    """
    Lists all eligible PIM (Privileged Identity Management) roles that can be activated in Azure.

    Returns role names, scopes, and whether they are assigned directly or through a group.
    """
    return tools.list_eligible_roles()


@mcp.tool()
def list_active_roles() -> str:
    """
    Lists all currently active (elevated) PIM role assignments.

    Shows which roles you have activated, along with when they expire.
    Permanent (non-PIM) assignments are not included.
    """
    return tools.list_active_roles()


@mcp.tool()
def activate_pim_roles(roles: list[str], justification: str, duration: float = DEFAULT_DURATION_HOURS) -> str:
    """
    Activates specified PIM (Privileged Identity Management) roles in Azure.

    IMPORTANT: Always ask the user to provide the justification. Do NOT guess or make up
    a justification. The justification is required by policy and must come from the user.

    Args:
        roles: Array of role names to activate. These should match the role names
            shown in the Azure PIM portal. Each name is matched against your eligible
            roles at any scope; the first match is activated.
        justification: The business justification for activating these roles.
            This is required by Azure PIM.
        duration: Duration in hours for the role activation. Default is 8 hours.

    Returns:
        JSON with success, activatedRoles, failedRoles and message
    """
    return tools.activate_pim_roles(roles, justification, duration)


# ============================================================================
# ENTRY POINT
# ============================================================================

def configure_logging() -> None:
    """Logs to stderr; stdout carries the MCP stream."""
    level = getattr(logging, os.environ.get(ENV_LOG_LEVEL, "INFO").upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stderr
    )


def main():
    """Entry point for the MCP server."""
    configure_logging()
    logger.info("PIM MCP Server running on stdio")
    try:
        mcp.run()
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
