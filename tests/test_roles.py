from conftest import GROUP_OID, SUB, FakeAz, eligible_item
from pim_me.roles import list_active_roles, list_eligible_roles


def active_item(role_name, scope, assignment_type, end="2026-10-17T18:00:00Z"):
    return {
        "id": f"{scope}/active/{role_name}",
        "properties": {
            "roleDefinitionId": f"def-{role_name}",
            "scope": scope,
            "principalId": "user",
            "memberType": "Direct",
            "assignmentType": assignment_type,
            "startDateTime": "2026-10-17T10:00:00Z",
            "endDateTime": end,
            "expandedProperties": {"roleDefinition": {"displayName": role_name}},
        },
    }


def test_list_eligible_roles_normalizes_records(fake_az):
    result = list_eligible_roles(fake_az)

    assert result.success is True
    assert result.message == "Found 3 eligible PIM role assignments."
    assert [r.role_name for r in result.roles] == ["Owner", "Contributor", "Reader"]

    group_role = result.roles[2]
    assert group_role.member_type == "Group"
    assert group_role.principal_id == GROUP_OID
    assert group_role.role_eligibility_schedule_id == "schedule-123"
    assert fake_az.calls[0][:3] == ["rest", "--method", "GET"]


def test_list_eligible_roles_url_pins_api_version_and_filter(fake_az):
    list_eligible_roles(fake_az)

    url = fake_az.calls[0][fake_az.calls[0].index("--url") + 1]
    assert "roleEligibilityScheduleInstances" in url
    assert "api-version=2020-10-01" in url
    assert "$filter=asTarget()" in url


def test_scope_name_falls_back_to_last_scope_segment():
    az = FakeAz(eligible=[eligible_item("Owner", f"{SUB}/resourceGroups/my-rg")])

    role = list_eligible_roles(az).roles[0]

    assert role.scope_name == "my-rg"


def test_missing_fields_get_defaults():
    az = FakeAz(eligible=[{"properties": {}}])

    role = list_eligible_roles(az).roles[0]

    assert role.role_name == "Unknown Role"
    assert role.member_type == "Direct"
    assert role.status == "Eligible"
    assert role.scope_name == ""
    assert role.role_eligibility_schedule_id is None


def test_list_eligible_roles_transport_failure_is_reported():
    az = FakeAz()
    az.list_error = "ERROR: connection reset"

    result = list_eligible_roles(az)

    assert result.success is False
    assert result.roles == []
    assert result.message.startswith("Error listing PIM roles:")
    assert "connection reset" in result.message


def test_list_eligible_roles_invalid_json_is_reported():
    result = list_eligible_roles(lambda args: "<html>not json</html>")

    assert result.success is False
    assert "Invalid JSON" in result.message


def test_list_active_roles_keeps_only_activated_assignments():
    az = FakeAz(active=[
        active_item("Owner", f"{SUB}/resourceGroups/rg1", "Activated"),
        active_item("Reader", SUB, "Assigned"),
        active_item("Contributor", SUB, None),
    ])

    result = list_active_roles(az)

    assert result.success is True
    assert [r.role_name for r in result.roles] == ["Owner"]
    assert result.roles[0].end_date_time == "2026-10-17T18:00:00Z"
    assert result.roles[0].status == "Active"
    assert result.message == "Found 1 active PIM role assignments."


def test_list_active_roles_failure_is_reported():
    az = FakeAz()
    az.list_error = "boom"

    result = list_active_roles(az)

    assert result.success is False
    assert result.message.startswith("Error listing active PIM roles:")
