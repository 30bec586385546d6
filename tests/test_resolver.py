import pytest

from mysqldeploy.models.enums import CreateMode, MinimalTlsVersion
from mysqldeploy.schemas.server import DiagnosticSettingsProperties
from mysqldeploy.services.provisioning import ValidationError, parse_server_spec, validate_server_spec
from mysqldeploy.services.provisioning.resolver import (
    derive_restore_point_in_time,
    derive_source_server_id,
    derive_ssl_enforcement,
    derive_storage_autogrow,
    diagnostic_settings_enabled,
    resolve_server_fields,
)

SOURCE_ID = "/subscriptions/s/resourceGroups/rg/providers/Microsoft.DBforMySQL/servers/origin"


@pytest.mark.parametrize("mode", [CreateMode.GEO_RESTORE, CreateMode.POINT_IN_TIME_RESTORE, CreateMode.REPLICA])
def test_source_server_passes_through_for_non_default_modes(mode):
    assert derive_source_server_id(mode, SOURCE_ID) == SOURCE_ID


def test_source_server_dropped_for_default_mode():
    assert derive_source_server_id(CreateMode.DEFAULT, SOURCE_ID) is None


@pytest.mark.parametrize("mode", [CreateMode.DEFAULT, CreateMode.GEO_RESTORE, CreateMode.REPLICA])
def test_restore_point_dropped_outside_point_in_time_restore(mode):
    assert derive_restore_point_in_time(mode, "2024-01-01T00:00:00Z") is None


def test_restore_point_kept_for_point_in_time_restore():
    ts = "2024-01-01T00:00:00Z"
    assert derive_restore_point_in_time(CreateMode.POINT_IN_TIME_RESTORE, ts) == ts


@pytest.mark.parametrize("flag", [True, False])
def test_storage_autogrow_null_for_replica(flag):
    assert derive_storage_autogrow(CreateMode.REPLICA, flag) is None


@pytest.mark.parametrize("mode", [CreateMode.DEFAULT, CreateMode.GEO_RESTORE, CreateMode.POINT_IN_TIME_RESTORE])
def test_storage_autogrow_maps_flag(mode):
    assert derive_storage_autogrow(mode, True) == "Enabled"
    assert derive_storage_autogrow(mode, False) == "Disabled"


@pytest.mark.parametrize(
    "tls,expected",
    [
        (MinimalTlsVersion.TLS1_0, "Enabled"),
        (MinimalTlsVersion.TLS1_1, "Enabled"),
        (MinimalTlsVersion.TLS1_2, "Enabled"),
        (MinimalTlsVersion.TLS_ENFORCEMENT_DISABLED, "Disabled"),
    ],
)
def test_ssl_enforcement(tls, expected):
    assert derive_ssl_enforcement(tls) == expected


def test_diagnostics_disabled_without_receivers():
    assert diagnostic_settings_enabled(None) is False
    assert diagnostic_settings_enabled(DiagnosticSettingsProperties()) is False
    assert diagnostic_settings_enabled(DiagnosticSettingsProperties.model_validate({"receivers": {}})) is False


def test_diagnostics_ignores_empty_strings_and_destination_type():
    props = DiagnosticSettingsProperties.model_validate({
        "receivers": {"workspaceId": "", "logAnalyticsDestinationType": "Dedicated", "eventHub": {}},
    })
    assert diagnostic_settings_enabled(props) is False


@pytest.mark.parametrize(
    "receivers",
    [
        {"workspaceId": "w1"},
        {"storageAccountId": "sa1"},
        {"marketplacePartnerId": "mp1"},
        {"eventHub": {"authorizationRuleId": "rule1", "name": "hub"}},
    ],
)
def test_diagnostics_enabled_by_any_receiver(receivers):
    props = DiagnosticSettingsProperties.model_validate({"receivers": receivers})
    assert diagnostic_settings_enabled(props) is True


def test_resolve_server_fields_replica(server_config):
    spec = parse_server_spec({
        **server_config,
        "createMode": "Replica",
        "sourceServerResourceId": SOURCE_ID,
        "restorePointInTime": "2024-01-01T00:00:00Z",
        "minimalTlsVersion": "TLSEnforcementDisabled",
    })
    derived = resolve_server_fields(spec)
    assert derived.source_server_id == SOURCE_ID
    assert derived.restore_point_in_time is None
    assert derived.storage_autogrow is None
    assert derived.ssl_enforcement == "Disabled"
    assert derived.diagnostic_settings_enabled is False


def test_resolve_server_fields_default_ignores_supplied_source(server_config):
    spec = parse_server_spec({**server_config, "sourceServerResourceId": SOURCE_ID})
    derived = resolve_server_fields(spec)
    assert derived.source_server_id is None
    assert derived.storage_autogrow == "Enabled"
    assert derived.ssl_enforcement == "Enabled"


def test_parse_accepts_snake_case(server_config):
    spec = parse_server_spec({
        "name": "srv",
        "location": "westeurope",
        "administrator_login": "dbadmin",
        "administrator_login_password": "pw",
        "storage_size_gb": 20,
    })
    assert spec.administrator_login == "dbadmin"
    assert spec.storage_size_gb == 20


@pytest.mark.parametrize("days", [6, 36])
def test_parse_rejects_retention_out_of_range(server_config, days):
    with pytest.raises(ValidationError) as exc_info:
        parse_server_spec({**server_config, "backupRetentionDays": days})
    assert "backupRetentionDays" in exc_info.value.details


def test_parse_rejects_unknown_enum_and_bad_ip(server_config):
    with pytest.raises(ValidationError) as exc_info:
        parse_server_spec({
            **server_config,
            "createMode": "Clone",
            "firewallRules": [{"name": "r", "startIpAddress": "10.0.0.300", "endIpAddress": "10.0.0.1"}],
        })
    details = exc_info.value.details
    assert "createMode" in details
    assert "firewallRules.0.startIpAddress" in details


def test_parse_rejects_bad_timestamp(server_config):
    with pytest.raises(ValidationError):
        parse_server_spec({**server_config, "restorePointInTime": "yesterday"})


def test_validate_requires_source_for_geo_restore(server_config):
    spec = parse_server_spec({**server_config, "createMode": "GeoRestore"})
    with pytest.raises(ValidationError) as exc_info:
        validate_server_spec(spec)
    assert "sourceServerResourceId" in exc_info.value.details


def test_validate_requires_timestamp_for_point_in_time_restore(server_config):
    spec = parse_server_spec({
        **server_config,
        "createMode": "PointInTimeRestore",
        "sourceServerResourceId": SOURCE_ID,
    })
    with pytest.raises(ValidationError) as exc_info:
        validate_server_spec(spec)
    assert list(exc_info.value.details) == ["restorePointInTime"]


def test_validate_requires_credentials_for_default_mode():
    spec = parse_server_spec({"name": "srv", "location": "westeurope"})
    with pytest.raises(ValidationError) as exc_info:
        validate_server_spec(spec)
    assert set(exc_info.value.details) == {"administratorLogin", "administratorLoginPassword"}


def test_validate_rejects_duplicates_and_inverted_ranges(server_config):
    spec = parse_server_spec({
        **server_config,
        "firewallRules": [
            {"name": "a", "startIpAddress": "10.0.0.9", "endIpAddress": "10.0.0.1"},
            {"name": "a", "startIpAddress": "10.0.0.1", "endIpAddress": "10.0.0.2"},
        ],
        "databases": [{"name": "db"}, {"name": "db"}],
    })
    with pytest.raises(ValidationError) as exc_info:
        validate_server_spec(spec)
    details = exc_info.value.details
    assert details["firewallRules"] == "duplicate names: a"
    assert details["databases"] == "duplicate names: db"
    assert "firewallRules.0" in details


def test_validate_accepts_consistent_spec(full_server_spec):
    validate_server_spec(full_server_spec)


def test_parse_accepts_seven_digit_fractional_seconds(server_config):
    ts = "2024-01-01T00:00:00.1234567Z"
    spec = parse_server_spec({
        **server_config,
        "createMode": "PointInTimeRestore",
        "sourceServerResourceId": SOURCE_ID,
        "restorePointInTime": ts,
    })
    assert spec.restore_point_in_time == ts
    assert resolve_server_fields(spec).restore_point_in_time == ts


def test_validate_rejects_duplicate_principals(server_config):
    spec = parse_server_spec({
        **server_config,
        "roleAssignments": [{"roleDefinitionIdOrName": "Reader", "principalIds": ["p1", "p2", "p1"]}],
    })
    with pytest.raises(ValidationError) as exc_info:
        validate_server_spec(spec)
    assert exc_info.value.details == {"roleAssignments.0.principalIds": "duplicate principals: p1"}
