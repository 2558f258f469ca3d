# ============================================================================
# MODELS - Role records, activation requests and results
# ============================================================================
# Attributes are snake_case; JSON (REST bodies, config file, tool output) uses
# the camelCase aliases, so always dump with by_alias=True.
# ============================================================================

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Role references and records
# ============================================================================

class RoleReference(CamelModel):
    """A loosely typed role name and scope, as a user would write them."""

    name: str
    scope: str = ""

    @property
    def identifier(self) -> str:
        return f"{self.name} ({self.scope})"


class EligibleRole(CamelModel):
    """One roleEligibilityScheduleInstance visible to the caller.

    When member_type is "Group", principal_id is the group's object id, not
    the user's.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    role_definition_id: str = ""
    role_name: str = "Unknown Role"
    scope: str = ""
    scope_name: str = ""
    principal_id: str = ""
    principal_type: str = ""
    member_type: str = "Direct"
    status: str = "Eligible"
    role_eligibility_schedule_id: Optional[str] = None


class ActiveRole(CamelModel):
    """One PIM-activated roleAssignmentScheduleInstance."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    role_definition_id: str = ""
    role_name: str = "Unknown Role"
    scope: str = ""
    scope_name: str = ""
    principal_id: str = ""
    principal_type: str = ""
    member_type: str = "Direct"
    status: str = "Active"
    start_date_time: Optional[str] = None
    end_date_time: Optional[str] = None


class ListRolesResult(CamelModel):
    success: bool
    roles: list[Union[EligibleRole, ActiveRole]] = Field(default_factory=list)
    message: str


# ============================================================================
# Quick roles
# ============================================================================

class QuickRolesConfig(CamelModel):
    """Saved favourites, stored under the quickRoles key of the config file."""

    roles: list[RoleReference]
    description: Optional[str] = None
    default_justification: Optional[str] = None


class SaveResult(CamelModel):
    success: bool
    path: str
    error: Optional[str] = None


# ============================================================================
# Activation
# ============================================================================

def iso_duration(hours) -> str:
    """Formats a number of hours as an ISO 8601 duration, e.g. PT8H."""
    if float(hours).is_integer():
        hours = int(hours)
    return f"PT{hours}H"


class _ActivationRequestBase(BaseModel):
    principal_id: str
    role_definition_id: str
    justification: str
    duration_hours: float = 8

    def _properties(self) -> dict:
        return {
            "principalId": self.principal_id,
            "roleDefinitionId": self.role_definition_id,
            "requestType": "SelfActivate",
            "justification": self.justification,
            "scheduleInfo": {
                "expiration": {
                    "type": "AfterDuration",
                    "duration": iso_duration(self.duration_hours),
                },
            },
        }


class DirectActivationRequest(_ActivationRequestBase):
    """Self-activation of a role assigned directly to the user."""

    kind: Literal["direct"] = "direct"

    def to_body(self) -> dict:
        return {"properties": self._properties()}


class GroupLinkedActivationRequest(_ActivationRequestBase):
    """Self-activation of a role the user holds through group membership."""

    kind: Literal["group"] = "group"
    linked_role_eligibility_schedule_id: str

    def to_body(self) -> dict:
        properties = self._properties()
        properties["linkedRoleEligibilityScheduleId"] = self.linked_role_eligibility_schedule_id
        return {"properties": properties}


ActivationRequest = Annotated[
    Union[DirectActivationRequest, GroupLinkedActivationRequest],
    Field(discriminator="kind"),
]


class ActivationResult(CamelModel):
    success: bool
    message: str


class FailedRole(CamelModel):
    role: str
    error: str


class ActivationOutcome(CamelModel):
    success: bool
    activated_roles: list[str] = Field(default_factory=list)
    failed_roles: list[FailedRole] = Field(default_factory=list)
    message: str
