# ============================================================================
# ROLES - List eligible and active PIM role instances
# ============================================================================

import json
import logging

from .errors import ListError, PimError
from .models import ActiveRole, EligibleRole, ListRolesResult
from .utils import ACTIVE_INSTANCES_URL, ELIGIBLE_INSTANCES_URL, run_az

logger = logging.getLogger(__name__)


def _fetch_instances(url: str, runner) -> list[dict]:
    """GETs a schedule-instance collection and returns its `value` items."""
    try:
        output = runner(["rest", "--method", "GET", "--url", url])
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise ListError(f"Invalid JSON from Azure: {e}") from e
    except PimError as e:
        raise ListError(str(e)) from e

    items = data.get("value") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _display_names(props: dict) -> tuple[str, str]:
    """Role and scope display names, falling back to the last scope segment."""
    expanded = props.get("expandedProperties") or {}
    role_name = (expanded.get("roleDefinition") or {}).get("displayName") or "Unknown Role"

    scope = props.get("scope") or ""
    scope_name = (expanded.get("scope") or {}).get("displayName") or scope.split("/")[-1] or scope
    return role_name, scope_name


def _common_fields(item: dict) -> dict:
    props = item.get("properties") or {}
    role_name, scope_name = _display_names(props)
    return {
        "id": item.get("id") or "",
        "role_definition_id": props.get("roleDefinitionId") or "",
        "role_name": role_name,
        "scope": props.get("scope") or "",
        "scope_name": scope_name,
        "principal_id": props.get("principalId") or "",
        "principal_type": props.get("principalType") or "",
        "member_type": props.get("memberType") or "Direct",
    }


def parse_eligible_role(item: dict) -> EligibleRole:
    props = item.get("properties") or {}
    return EligibleRole(
        **_common_fields(item),
        status=props.get("status") or "Eligible",
        role_eligibility_schedule_id=props.get("roleEligibilityScheduleId") or None,
    )


def parse_active_role(item: dict) -> ActiveRole:
    props = item.get("properties") or {}
    return ActiveRole(
        **_common_fields(item),
        status=props.get("status") or "Active",
        start_date_time=props.get("startDateTime"),
        end_date_time=props.get("endDateTime"),
    )


def list_eligible_roles(runner=run_az) -> ListRolesResult:
    """Lists every role the current user can activate. Never raises."""
    logger.info("Fetching eligible role assignments...")
    try:
        items = _fetch_instances(ELIGIBLE_INSTANCES_URL, runner)
    except ListError as e:
        return ListRolesResult(success=False, roles=[], message=f"Error listing PIM roles: {e}")

    roles = [parse_eligible_role(item) for item in items]
    return ListRolesResult(
        success=True,
        roles=roles,
        message=f"Found {len(roles)} eligible PIM role assignments."
    )


def list_active_roles(runner=run_az) -> ListRolesResult:
    """Lists PIM-activated roles; permanent assignments are left out. Never raises."""
    logger.info("Fetching active role assignments...")
    try:
        items = _fetch_instances(ACTIVE_INSTANCES_URL, runner)
    except ListError as e:
        return ListRolesResult(success=False, roles=[], message=f"Error listing active PIM roles: {e}")

    roles = [
        parse_active_role(item) for item in items
        if (item.get("properties") or {}).get("assignmentType") == "Activated"
    ]
    return ListRolesResult(
        success=True,
        roles=roles,
        message=f"Found {len(roles)} active PIM role assignments."
    )
