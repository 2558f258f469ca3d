import json

from pim_me.config import QuickRolesStore
from pim_me.models import QuickRolesConfig, RoleReference


def write_config(directory, quick_roles, **other):
    path = directory / ".pim-me-mcp.json"
    path.write_text(json.dumps({"quickRoles": quick_roles, **other}), encoding="utf-8")
    return path


def test_load_returns_none_when_nothing_is_configured(store):
    assert store.load() is None


def test_round_trip_preserves_config_and_unrelated_keys(store):
    store.config_path.write_text(json.dumps({"theme": "dark", "quickRoles": {"roles": []}}), encoding="utf-8")
    config = QuickRolesConfig(roles=[RoleReference(name="Owner", scope="rg1")], default_justification="dev")

    result = store.save(config)

    assert result.success is True
    assert result.path == str(store.config_path)
    assert store.load() == config
    on_disk = json.loads(store.config_path.read_text(encoding="utf-8"))
    assert on_disk["theme"] == "dark"
    assert on_disk["quickRoles"] == {"roles": [{"name": "Owner", "scope": "rg1"}], "defaultJustification": "dev"}


def test_save_over_corrupt_file_starts_fresh(store):
    store.config_path.write_text("{not json", encoding="utf-8")

    result = store.save(QuickRolesConfig(roles=[RoleReference(name="Owner", scope="rg1")]))

    assert result.success is True
    assert json.loads(store.config_path.read_text(encoding="utf-8")) == {
        "quickRoles": {"roles": [{"name": "Owner", "scope": "rg1"}]}
    }


def test_save_failure_is_returned(tmp_path):
    store = QuickRolesStore(environ={}, cwd=tmp_path, home=tmp_path / "missing-dir")

    result = store.save(QuickRolesConfig(roles=[]))

    assert result.success is False
    assert result.error


def test_env_array_wins_and_picks_up_env_description(store):
    write_config(store.config_path.parent, {"roles": [{"name": "Reader", "scope": "home"}]})
    store = QuickRolesStore(
        environ={
            "PIM_QUICK_ROLES": '[{"name": "Owner", "scope": "rg1"}]',
            "PIM_QUICK_ROLES_DESC": "env roles",
            "PIM_DEFAULT_JUSTIFICATION": "env reason",
        },
        cwd=store.local_config_path.parent,
        home=store.config_path.parent,
    )

    config = store.load()

    assert config.roles == [RoleReference(name="Owner", scope="rg1")]
    assert config.description == "env roles"
    assert config.default_justification == "env reason"


def test_env_object_is_a_full_config(store):
    store = QuickRolesStore(
        environ={"PIM_QUICK_ROLES": '{"roles": [{"name": "Owner", "scope": "rg1"}], "defaultJustification": "x"}'},
        home=store.config_path.parent,
        cwd=store.local_config_path.parent,
    )

    config = store.load()

    assert config.default_justification == "x"
    assert config.roles[0].name == "Owner"


def test_malformed_env_falls_through_to_files(store, caplog):
    write_config(store.config_path.parent, {"roles": [{"name": "Reader", "scope": "home"}]})
    store = QuickRolesStore(
        environ={"PIM_QUICK_ROLES": "[not json"},
        cwd=store.local_config_path.parent,
        home=store.config_path.parent,
    )

    config = store.load()

    assert config.roles[0].name == "Reader"
    assert "not valid JSON" in caplog.text


def test_cwd_file_wins_over_home_file(store):
    write_config(store.config_path.parent, {"roles": [{"name": "Reader", "scope": "home"}]})
    write_config(store.local_config_path.parent, {"roles": [{"name": "Owner", "scope": "local"}]})

    assert store.load().roles[0].scope == "local"


def test_corrupt_cwd_file_is_skipped(store):
    store.local_config_path.write_text("{oops", encoding="utf-8")
    write_config(store.config_path.parent, {"roles": [{"name": "Reader", "scope": "home"}]})

    assert store.load().roles[0].scope == "home"


def test_file_without_quick_roles_key_is_ignored(store):
    store.config_path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

    assert store.load() is None


def test_each_load_reads_fresh(store):
    write_config(store.config_path.parent, {"roles": [{"name": "Reader", "scope": "one"}]})
    assert store.load().roles[0].scope == "one"

    write_config(store.config_path.parent, {"roles": [{"name": "Reader", "scope": "two"}]})
    assert store.load().roles[0].scope == "two"
