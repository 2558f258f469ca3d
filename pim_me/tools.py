# ============================================================================
# TOOL FUNCTIONS - Text responses behind each MCP tool
# ============================================================================
# Failures are raised as ToolError so the client receives error content.
# ============================================================================

import json
from datetime import datetime

from mcp.server.fastmcp.exceptions import ToolError

from .activation import activate_quick_roles as _activate_quick_roles
from .activation import activate_roles
from .config import QuickRolesStore
from .errors import ConfigurationError
from .models import QuickRolesConfig, RoleReference
from .roles import list_active_roles as _list_active_roles
from .roles import list_eligible_roles as _list_eligible_roles
from .utils import DEFAULT_DURATION_HOURS, run_az


def _to_json(model) -> str:
    return json.dumps(model.model_dump(by_alias=True), indent=2)


def _check_duration(duration) -> None:
    if duration is None or duration <= 0:
        raise ToolError("Error: duration must be a positive number of hours.")


def _format_expiry(end_date_time: str = None) -> str:
    """Renders an ISO timestamp in local time; unparseable values are shown as is."""
    if not end_date_time:
        return "Unknown"
    try:
        parsed = datetime.fromisoformat(end_date_time.replace("Z", "+00:00"))
    except ValueError:
        return end_date_time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%Y-%m-%d %H:%M %Z").strip()


# ============================================================================
# Listing
# ============================================================================

def list_eligible_roles(runner=run_az) -> str:
    """Eligible roles as JSON {success, roles, message}."""
    return _to_json(_list_eligible_roles(runner))


def list_active_roles(runner=run_az) -> str:
    """Active PIM elevations with their expiry."""
    result = _list_active_roles(runner)

    if not result.success:
        raise ToolError(f"Error: {result.message}")

    if not result.roles:
        return "No active role elevations found. Use `activate_quick_roles` or `activate_pim_roles` to elevate."

    roles_list = "\n\n".join(
        f"• **{r.role_name}** ({r.scope_name})\n  Expires: {_format_expiry(r.end_date_time)}"
        for r in result.roles
    )
    return f"**Active Role Elevations ({len(result.roles)}):**\n\n{roles_list}"


def list_quick_roles(store: QuickRolesStore = None, runner=run_az) -> str:
    """Numbered eligible roles plus the currently saved quick roles."""
    store = store or QuickRolesStore()
    listing = _list_eligible_roles(runner)

    if not listing.success:
        raise ToolError(f"Error fetching roles: {listing.message}")

    role_list = "\n".join(
        f"{index}. {role.role_name} — {role.scope_name} ({role.member_type})"
        for index, role in enumerate(listing.roles)
    )

    current = store.load()
    current_config = ""
    if current:
        current_config = "\n\n**Currently configured quick roles:**\n" + "\n".join(
            f"• {r.name} ({r.scope})" for r in current.roles
        )

    return f"""IMPORTANT: You MUST display this entire role list to the user. Do not summarize or truncate.

===== ELIGIBLE PIM ROLES =====

{role_list}

==============================
{current_config}

Tell the user which roles they want to save by index number (e.g., "save 0, 3, and 7")."""


# ============================================================================
# Saving
# ============================================================================

def save_quick_roles(
    indices: list[int],
    description: str = None,
    default_justification: str = None,
    store: QuickRolesStore = None,
    runner=run_az
) -> str:
    """Saves the eligible roles at `indices` as the quick roles."""
    store = store or QuickRolesStore()

    if not indices:
        raise ToolError(
            "Error: No role indices provided. Please specify which roles to save "
            "using their index numbers from list_quick_roles."
        )

    listing = _list_eligible_roles(runner)
    if not listing.success:
        raise ToolError(f"Error fetching roles: {listing.message}")

    count = len(listing.roles)
    invalid = [i for i in indices if i < 0 or i >= count]
    if invalid:
        raise ToolError(
            f"Error: Invalid indices: {', '.join(str(i) for i in invalid)}. "
            f"Valid range is 0-{count - 1}."
        )

    roles = [
        RoleReference(name=listing.roles[i].role_name, scope=listing.roles[i].scope_name)
        for i in indices
    ]
    config = QuickRolesConfig(
        roles=roles,
        description=description,
        default_justification=default_justification,
    )

    result = store.save(config)
    if not result.success:
        raise ToolError(f"Error saving config: {result.error}")

    saved_list = "\n".join(f"• {r.name} ({r.scope})" for r in roles)

    if default_justification:
        justification_note = (
            f'\n**Default justification:** "{default_justification}"\n\n'
            "You can now activate your quick roles without providing a justification each time!"
        )
    else:
        justification_note = '\n**Tip:** Just say "activate my quick roles for <justification>" to use them.'

    return f"""✅ **Quick roles saved successfully!**

**Saved to:** `{result.path}`

**Your quick roles:**
{saved_list}

You can now use the `activate_quick_roles` tool to activate all of these with a single command!
{justification_note}"""


# ============================================================================
# Activation
# ============================================================================

def activate_quick_roles(
    justification: str = None,
    duration: float = DEFAULT_DURATION_HOURS,
    store: QuickRolesStore = None,
    runner=run_az
) -> str:
    """Activates the saved quick roles, reading the config fresh."""
    _check_duration(duration)
    try:
        outcome = _activate_quick_roles(justification, duration, store, runner)
    except ConfigurationError as e:
        raise ToolError(f"Error: {e}") from e
    return _to_json(outcome)


def activate_pim_roles(
    roles: list[str],
    justification: str,
    duration: float = DEFAULT_DURATION_HOURS,
    runner=run_az
) -> str:
    """Activates roles given by name only; each name may match any scope."""
    if not roles:
        raise ToolError("Error: No roles specified for activation.")
    if not justification:
        raise ToolError("Error: Justification is required for PIM role activation.")
    _check_duration(duration)

    references = [RoleReference(name=name, scope="") for name in roles]
    return _to_json(activate_roles(references, justification, duration, runner))
