import base64
import json

import pytest

from pim_me.config import QuickRolesStore
from pim_me.errors import TransportError

USER_OID = "11111111-1111-1111-1111-111111111111"
GROUP_OID = "22222222-2222-2222-2222-222222222222"
SUB = "/subscriptions/00000000-0000-0000-0000-000000000001"


def make_token(claims: dict) -> str:
    """Unsigned JWT-shaped token carrying `claims`."""
    def segment(data: dict) -> str:
        raw = base64.urlsafe_b64encode(json.dumps(data).encode("utf-8")).decode("ascii")
        return raw.rstrip("=")
    return f"{segment({'alg': 'none', 'typ': 'JWT'})}.{segment(claims)}.signature"


def eligible_item(role_name, scope, scope_name=None, member_type="Direct",
                  principal_id=USER_OID, schedule_id=None, definition_id=None):
    expanded = {"roleDefinition": {"displayName": role_name}}
    if scope_name is not None:
        expanded["scope"] = {"displayName": scope_name}
    props = {
        "roleDefinitionId": definition_id or f"{SUB}/providers/Microsoft.Authorization/roleDefinitions/{role_name.lower()}",
        "scope": scope,
        "principalId": principal_id,
        "principalType": "Group" if member_type == "Group" else "User",
        "memberType": member_type,
        "status": "Provisioned",
        "expandedProperties": expanded,
    }
    if schedule_id:
        props["roleEligibilityScheduleId"] = schedule_id
    return {"id": f"{scope}/eligibility/{role_name}", "properties": props}


class FakeAz:
    """Stands in for run_az: answers token, list and activation calls and records them."""

    def __init__(self, eligible=None, active=None, oid=USER_OID):
        self.token = make_token({"oid": oid}) if oid else make_token({"name": "no oid"})
        self.eligible = eligible if eligible is not None else []
        self.active = active if active is not None else []
        self.calls = []
        self.token_error = None
        self.list_error = None
        self.put_errors = {}
        self.put_response = {"id": "request-id", "properties": {"status": "Provisioned"}}

    def __call__(self, args):
        self.calls.append(list(args))

        if args[:2] == ["account", "get-access-token"]:
            if self.token_error:
                raise TransportError(self.token_error)
            return self.token + "\n"

        if args[0] == "rest":
            method = args[args.index("--method") + 1]
            url = args[args.index("--url") + 1]
            if method == "GET":
                if self.list_error:
                    raise TransportError(self.list_error)
                if "roleEligibilityScheduleInstances" in url:
                    return json.dumps({"value": self.eligible})
                if "roleAssignmentScheduleInstances" in url:
                    return json.dumps({"value": self.active})
            if method == "PUT":
                for scope, error in self.put_errors.items():
                    if f"management.azure.com{scope}/providers" in url:
                        raise TransportError(error)
                return json.dumps(self.put_response)

        raise AssertionError(f"unexpected az call: {args}")

    @property
    def put_calls(self):
        return [c for c in self.calls if c[0] == "rest" and "PUT" in c]

    def put_bodies(self):
        return [json.loads(c[c.index("--body") + 1]) for c in self.put_calls]


@pytest.fixture
def fake_az():
    return FakeAz(eligible=[
        eligible_item("Owner", f"{SUB}/resourceGroups/rg1", "rg1"),
        eligible_item("Contributor", SUB, "Dev Subscription"),
        eligible_item(
            "Reader", f"{SUB}/resourceGroups/shared", "shared",
            member_type="Group", principal_id=GROUP_OID, schedule_id="schedule-123"
        ),
    ])


@pytest.fixture
def store(tmp_path):
    home = tmp_path / "home"
    cwd = tmp_path / "cwd"
    home.mkdir()
    cwd.mkdir()
    return QuickRolesStore(environ={}, cwd=cwd, home=home)
