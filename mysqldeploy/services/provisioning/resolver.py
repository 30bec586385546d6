"""
Field derivation rules and local validation for MySQL server deployments.

The derive_* functions are pure and never raise: inconsistent combinations
(e.g. GeoRestore without a source server) are passed through as-is.
validate_server_spec() is the separate fail-fast check run before
composition when strict validation is enabled.
"""

import ipaddress
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from mysqldeploy.models.enums import CreateMode, EnabledState, MinimalTlsVersion
from mysqldeploy.schemas.server import DiagnosticSettingsProperties, MySQLServerSpec

from .errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DerivedServerFields:
    """Values computed from cross-field rules, ready to place in the server request."""
    ssl_enforcement: str
    storage_autogrow: Optional[str]
    source_server_id: Optional[str]
    restore_point_in_time: Optional[str]
    diagnostic_settings_enabled: bool


def derive_ssl_enforcement(minimal_tls_version: MinimalTlsVersion) -> str:
    if minimal_tls_version == MinimalTlsVersion.TLS_ENFORCEMENT_DISABLED:
        return EnabledState.DISABLED.value
    return EnabledState.ENABLED.value


def derive_storage_autogrow(create_mode: CreateMode, storage_autogrow: bool) -> Optional[str]:
    # Replicas inherit storage behaviour from their source server
    if create_mode == CreateMode.REPLICA:
        return None
    return EnabledState.ENABLED.value if storage_autogrow else EnabledState.DISABLED.value


def derive_source_server_id(
    create_mode: CreateMode,
    source_server_resource_id: Optional[str]
) -> Optional[str]:
    if create_mode == CreateMode.DEFAULT:
        return None
    return source_server_resource_id


def derive_restore_point_in_time(
    create_mode: CreateMode,
    restore_point_in_time: Optional[str]
) -> Optional[str]:
    if create_mode == CreateMode.POINT_IN_TIME_RESTORE:
        return restore_point_in_time
    return None


def diagnostic_settings_enabled(properties: Optional[DiagnosticSettingsProperties]) -> bool:
    """
    Decide whether a diagnostic-settings resource should exist at all.

    True iff at least one of workspaceId, eventHub, storageAccountId or
    marketplacePartnerId is non-empty in the receivers block. An event hub
    counts when its authorization rule ID or name is non-empty.
    """
    if properties is None or properties.receivers is None:
        return False

    receivers = properties.receivers
    event_hub = receivers.event_hub
    has_event_hub = event_hub is not None and bool(event_hub.authorization_rule_id or event_hub.name)

    return any([
        bool(receivers.workspace_id),
        has_event_hub,
        bool(receivers.storage_account_id),
        bool(receivers.marketplace_partner_id),
    ])


def resolve_server_fields(spec: MySQLServerSpec) -> DerivedServerFields:
    """
    Compute every derived server value in one pass.

    Args:
        spec: Validated server specification

    Returns:
        DerivedServerFields for the server request
    """
    return DerivedServerFields(
        ssl_enforcement=derive_ssl_enforcement(spec.minimal_tls_version),
        storage_autogrow=derive_storage_autogrow(spec.create_mode, spec.storage_autogrow),
        source_server_id=derive_source_server_id(spec.create_mode, spec.source_server_resource_id),
        restore_point_in_time=derive_restore_point_in_time(
            spec.create_mode, spec.restore_point_in_time
        ),
        diagnostic_settings_enabled=diagnostic_settings_enabled(spec.diagnostic_settings),
    )


def parse_server_spec(data: Dict[str, Any]) -> MySQLServerSpec:
    """
    Build a MySQLServerSpec from raw user input.

    Args:
        data: Flat configuration mapping (camelCase or snake_case keys)

    Returns:
        Validated MySQLServerSpec

    Raises:
        ValidationError: If any field is missing, malformed or out of range
    """
    try:
        return MySQLServerSpec.model_validate(data)
    except PydanticValidationError as e:
        details = {
            ".".join(str(part) for part in error["loc"]) or "__root__": error["msg"]
            for error in e.errors()
        }
        raise ValidationError("Invalid server configuration", details=details)


def _duplicates(names: Iterable[str]) -> List[str]:
    return sorted(name for name, count in Counter(names).items() if count > 1)


def validate_server_spec(spec: MySQLServerSpec) -> None:
    """
    Fail fast on combinations the control plane would reject.

    Args:
        spec: Validated server specification

    Raises:
        ValidationError: With one entry per problem found
    """
    details: Dict[str, str] = {}

    if spec.create_mode == CreateMode.DEFAULT:
        if not spec.administrator_login:
            details["administratorLogin"] = "required when createMode is Default"
        if spec.administrator_login_password is None or not spec.administrator_login_password.get_secret_value():
            details["administratorLoginPassword"] = "required when createMode is Default"
    elif not spec.source_server_resource_id:
        details["sourceServerResourceId"] = f"required when createMode is {spec.create_mode.value}"

    if spec.create_mode == CreateMode.POINT_IN_TIME_RESTORE and not spec.restore_point_in_time:
        details["restorePointInTime"] = "required when createMode is PointInTimeRestore"

    families = {
        "firewallRules": [rule.name for rule in spec.firewall_rules],
        "virtualNetworkRules": [rule.name for rule in spec.virtual_network_rules],
        "databases": [database.name for database in spec.databases],
        "serverConfigurations": [entry.name for entry in spec.server_configurations],
        "privateEndpoints": [endpoint.name for endpoint in spec.private_endpoints],
    }
    for field_name, names in families.items():
        duplicated = _duplicates(names)
        if duplicated:
            details[field_name] = f"duplicate names: {', '.join(duplicated)}"

    for index, assignment in enumerate(spec.role_assignments):
        duplicated = _duplicates(assignment.principal_ids)
        if duplicated:
            details[f"roleAssignments.{index}.principalIds"] = f"duplicate principals: {', '.join(duplicated)}"

    for index, rule in enumerate(spec.firewall_rules):
        if ipaddress.IPv4Address(rule.start_ip_address) > ipaddress.IPv4Address(rule.end_ip_address):
            details[f"firewallRules.{index}"] = (
                f"startIpAddress {rule.start_ip_address} is after endIpAddress {rule.end_ip_address}"
            )

    if details:
        logger.warning(f"Rejected configuration for server {spec.name}: {details}")
        raise ValidationError(f"Invalid configuration for server {spec.name}", details=details)
