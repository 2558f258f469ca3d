# ============================================================================
# ACTIVATION - Build, submit and batch PIM self-activation requests
# ============================================================================

import json
import logging
import uuid

from .config import QuickRolesStore
from .errors import (
    AlreadyActivatedError, ConfigurationError, NoMatchError, ParseError,
    PimError, TransportError
)
from .identity import get_current_user_principal_id
from .matching import RoleMatcher, SubstringMatcher, find_matching_role
from .models import (
    ActivationOutcome, ActivationRequest, ActivationResult, DirectActivationRequest,
    EligibleRole, FailedRole, GroupLinkedActivationRequest, RoleReference
)
from .roles import list_eligible_roles
from .utils import (
    ALREADY_ACTIVE_MARKERS, DEFAULT_DURATION_HOURS, MANAGEMENT_RESOURCE,
    PIM_API_VERSION, STATUS_TOKENS, run_az
)

logger = logging.getLogger(__name__)


# ============================================================================
# Single activation
# ============================================================================

def build_activation_request(
    role: EligibleRole,
    principal_id: str,
    justification: str,
    duration_hours: float = DEFAULT_DURATION_HOURS
) -> ActivationRequest:
    """
    Builds the self-activation request for an eligible role.

    principal_id must be the signed-in user's object id. For group-based
    eligibility the record's own principal_id is the group, so it is never
    used here; the group link travels in linkedRoleEligibilityScheduleId.
    """
    common = {
        "principal_id": principal_id,
        "role_definition_id": role.role_definition_id,
        "justification": justification,
        "duration_hours": duration_hours,
    }

    if role.member_type == "Group":
        if role.role_eligibility_schedule_id:
            return GroupLinkedActivationRequest(
                **common,
                linked_role_eligibility_schedule_id=role.role_eligibility_schedule_id,
            )
        logger.warning(
            "Group-based role %s at %s has no roleEligibilityScheduleId; sending a direct request",
            role.role_name, role.scope_name
        )

    return DirectActivationRequest(**common)


def activation_url(scope: str, request_name: str) -> str:
    return (
        f"{MANAGEMENT_RESOURCE}{scope}/providers/Microsoft.Authorization/"
        f"roleAssignmentScheduleRequests/{request_name}?api-version={PIM_API_VERSION}"
    )


def _submit(scope: str, request: ActivationRequest, runner) -> dict:
    url = activation_url(scope, str(uuid.uuid4()))
    body = json.dumps(request.to_body())

    try:
        output = runner(["rest", "--method", "PUT", "--url", url, "--body", body])
    except TransportError as e:
        if any(marker in str(e) for marker in ALREADY_ACTIVE_MARKERS):
            raise AlreadyActivatedError(str(e)) from e
        raise

    try:
        response = json.loads(output)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in activation response: {e}") from e
    return response if isinstance(response, dict) else {}


def activate_role(
    role: EligibleRole,
    principal_id: str,
    justification: str,
    duration_hours: float = DEFAULT_DURATION_HOURS,
    runner=run_az
) -> ActivationResult:
    """Submits one activation request. Never raises."""
    request = build_activation_request(role, principal_id, justification, duration_hours)
    logger.info("Activating role at scope: %s", role.scope)

    try:
        response = _submit(role.scope, request, runner)
    except AlreadyActivatedError:
        return ActivationResult(success=True, message="Role is already activated")
    except PimError as e:
        return ActivationResult(success=False, message=f"Failed to activate role: {e}")

    status = (response.get("properties") or {}).get("status")
    if status in STATUS_TOKENS or response.get("id"):
        return ActivationResult(
            success=True,
            message=f"Role activation {status or 'submitted'} successfully"
        )

    return ActivationResult(success=True, message="Role activation request submitted")


# ============================================================================
# Batch activation
# ============================================================================

def _summary(activated: list[str], failed: list[FailedRole]) -> str:
    if not activated:
        return "No roles were activated."
    message = f"Successfully activated {len(activated)} role(s)."
    if failed:
        message += f" Failed to activate {len(failed)} role(s)."
    return message


def activate_roles(
    roles: list[RoleReference],
    justification: str,
    duration_hours: float = DEFAULT_DURATION_HOURS,
    runner=run_az,
    matcher: RoleMatcher = None
) -> ActivationOutcome:
    """
    Activates each requested role, in order, for the signed-in user.

    The user's identity and the eligible roles are fetched once. A role that
    cannot be matched or activated is recorded in failed_roles and the batch
    moves on. Repeated references are activated once. Never raises.
    """
    matcher = matcher or SubstringMatcher()
    unique: dict[str, RoleReference] = {}
    for r in roles:
        reference = RoleReference.model_validate(r)
        unique.setdefault(reference.identifier, reference)
    roles = list(unique.values())

    logger.info("Getting current user principal ID...")
    try:
        principal_id = get_current_user_principal_id(runner)
    except PimError as e:
        return ActivationOutcome(
            success=False,
            failed_roles=[FailedRole(role=r.identifier, error=str(e)) for r in roles],
            message=f"Error during PIM activation: {e}",
        )
    logger.info("User principal ID: %s", principal_id)

    listing = list_eligible_roles(runner)
    if not listing.success:
        return ActivationOutcome(
            success=False,
            failed_roles=[FailedRole(role=r.identifier, error=listing.message) for r in roles],
            message=listing.message,
        )

    activated: list[str] = []
    failed: list[FailedRole] = []

    for reference in roles:
        identifier = reference.identifier
        logger.info("Looking for role: %s", identifier)

        try:
            match = find_matching_role(reference, listing.roles, matcher)
        except NoMatchError as e:
            failed.append(FailedRole(role=identifier, error=str(e)))
            continue

        logger.info("Found matching role: %s at %s (%s)", match.role_name, match.scope_name, match.member_type)

        result = activate_role(match, principal_id, justification, duration_hours, runner)
        if result.success:
            activated.append(identifier)
            logger.info("Successfully activated: %s", identifier)
        else:
            failed.append(FailedRole(role=identifier, error=result.message))
            logger.warning("Failed to activate %s: %s", identifier, result.message)

    return ActivationOutcome(
        success=not failed,
        activated_roles=activated,
        failed_roles=failed,
        message=_summary(activated, failed),
    )


def activate_quick_roles(
    justification: str = None,
    duration_hours: float = DEFAULT_DURATION_HOURS,
    store: QuickRolesStore = None,
    runner=run_az
) -> ActivationOutcome:
    """
    Activates the saved quick roles.

    Raises ConfigurationError, before any Azure call, when no quick roles are
    configured or no justification is given and none is configured.
    """
    store = store or QuickRolesStore()
    config = store.load()

    if config is None or not config.roles:
        raise ConfigurationError(
            f"Quick roles are not configured. Use save_quick_roles or create {store.config_path}"
        )

    final_justification = justification or config.default_justification
    if not final_justification:
        raise ConfigurationError(
            "Justification is required. Provide one or set defaultJustification in your config."
        )

    return activate_roles(config.roles, final_justification, duration_hours, runner)
