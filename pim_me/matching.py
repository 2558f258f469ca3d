# ============================================================================
# MATCHING - Resolve loose role references against eligible roles
# ============================================================================

from typing import Iterable, Protocol

from .errors import NoMatchError
from .models import EligibleRole, RoleReference


class RoleMatcher(Protocol):
    def matches(self, request: RoleReference, candidate: EligibleRole) -> bool:
        ...


class SubstringMatcher:
    """
    Case-insensitive containment in either direction.

    Name: requested name in the role name, or the role name in the request.
    Scope: requested scope in the raw scope or the display scope, or the display
    scope in the requested scope. An empty requested scope matches any scope.
    """

    def matches(self, request: RoleReference, candidate: EligibleRole) -> bool:
        name = request.name.lower()
        role_name = candidate.role_name.lower()
        name_match = name in role_name or role_name in name

        scope = request.scope.lower()
        scope_match = (
            scope in candidate.scope.lower()
            or scope in candidate.scope_name.lower()
            or candidate.scope_name.lower() in scope
        )
        return name_match and scope_match


class ExactMatcher:
    """Case-insensitive equality on the role name and on either scope form."""

    def matches(self, request: RoleReference, candidate: EligibleRole) -> bool:
        scope = request.scope.lower()
        return (
            request.name.lower() == candidate.role_name.lower()
            and scope in (candidate.scope.lower(), candidate.scope_name.lower())
        )


def find_matching_role(
    reference: RoleReference,
    roles: Iterable[EligibleRole],
    matcher: RoleMatcher = None
) -> EligibleRole:
    """Returns the first eligible role the matcher accepts, in listing order."""
    matcher = matcher or SubstringMatcher()
    for role in roles:
        if matcher.matches(reference, role):
            return role
    raise NoMatchError(reference)
