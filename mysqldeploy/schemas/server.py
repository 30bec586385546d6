"""Pydantic schemas for the MySQL server configuration surface.

Provides input schemas for:
- The server itself (credentials, backup, storage, creation mode, TLS)
- Child resource lists (firewall rules, virtual network rules, databases,
  server configurations)
- Extension resources (role assignments, private endpoints, diagnostic
  settings, management lock)

Every schema accepts the camelCase spelling used by the control plane as
well as snake_case field names.
"""

import ipaddress
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, SecretStr, field_validator

from mysqldeploy.models.enums import (
    CreateMode,
    EnabledState,
    LockKind,
    LogAnalyticsDestinationType,
    MinimalTlsVersion,
    ServerVersion,
)
from mysqldeploy.schemas.common import CamelModel


# ========================
# Child Resource Schemas
# ========================


class FirewallRuleSpec(CamelModel):
    """Schema for a server firewall rule."""

    name: str = Field(..., min_length=1, max_length=128, description="Rule name")
    start_ip_address: str = Field(..., description="First IPv4 address of the range")
    end_ip_address: str = Field(..., description="Last IPv4 address of the range")

    @field_validator("start_ip_address", "end_ip_address")
    @classmethod
    def validate_ipv4(cls, value: str) -> str:
        ipaddress.IPv4Address(value)
        return value


class VirtualNetworkRuleSpec(CamelModel):
    """Schema for a server virtual network rule."""

    name: str = Field(..., min_length=1, max_length=128, description="Rule name")
    ignore_missing_vnet_service_endpoint: bool = Field(
        False,
        description="Create the rule before the subnet has the Microsoft.Sql service endpoint",
    )
    virtual_network_subnet_id: str = Field(..., min_length=1, description="Subnet resource ID")


class DatabaseSpec(CamelModel):
    """Schema for a database hosted on the server."""

    name: str = Field(..., min_length=1, max_length=64, description="Database name")
    charset: Optional[str] = Field(None, description="Character set (defaults to utf32)")
    collation: Optional[str] = Field(None, description="Collation (defaults to utf32_general_ci)")


class ServerConfigurationEntry(CamelModel):
    """Schema for a server parameter override."""

    name: str = Field(..., min_length=1, description="Server parameter name")
    value: str = Field(..., description="Server parameter value")


class RoleAssignmentSpec(CamelModel):
    """Schema for an RBAC role assignment on the server."""

    role_definition_id_or_name: str = Field(
        ...,
        min_length=1,
        description="Built-in role name or fully qualified role definition ID",
    )
    principal_ids: List[str] = Field(..., min_length=1, description="Principal object IDs")
    principal_type: Optional[str] = Field(None, description="User, Group, ServicePrincipal, ...")
    description: Optional[str] = Field(None, description="Assignment description")


class PrivateEndpointSpec(CamelModel):
    """Schema for a private endpoint connecting a subnet to the server."""

    name: str = Field(..., min_length=1, max_length=64, description="Endpoint name (prefixed with the server name)")
    group_id: str = Field(..., min_length=1, description="Private link sub-resource, e.g. mysqlServer")
    subnet_id: str = Field(..., min_length=1, description="Subnet resource ID")
    private_dns_zone_id: Optional[str] = Field(None, description="Private DNS zone resource ID")
    manual_approval_enabled: Optional[bool] = Field(None, description="Require manual connection approval")
    tags: Dict[str, str] = Field(default_factory=dict, description="Endpoint tags")


# ========================
# Diagnostic Settings Schemas
# ========================


class LogCategorySetting(CamelModel):
    """A log category (or category group) forwarded by diagnostic settings."""

    category: Optional[str] = Field(None, description="Log category")
    category_group: Optional[str] = Field(None, description="Log category group, e.g. allLogs")
    enabled: bool = Field(True, description="Forward this category")


class MetricCategorySetting(CamelModel):
    """A metric category forwarded by diagnostic settings."""

    category: str = Field("AllMetrics", description="Metric category")
    enabled: bool = Field(True, description="Forward this category")
    time_grain: Optional[str] = Field(None, description="ISO-8601 time grain")


class EventHubReceiver(CamelModel):
    """Event hub destination for diagnostic settings."""

    authorization_rule_id: Optional[str] = Field(None, description="Event hub authorization rule ID")
    name: Optional[str] = Field(None, description="Event hub name")


class DiagnosticReceivers(CamelModel):
    """Destinations diagnostic settings may forward telemetry to."""

    event_hub: Optional[EventHubReceiver] = None
    log_analytics_destination_type: Optional[LogAnalyticsDestinationType] = None
    marketplace_partner_id: Optional[str] = None
    storage_account_id: Optional[str] = None
    workspace_id: Optional[str] = None


class DiagnosticSettingsProperties(CamelModel):
    """Diagnostic settings block for the server."""

    name: Optional[str] = Field(None, description="Setting name (defaults to <server>-diagnosticSettings)")
    logs: Optional[List[LogCategorySetting]] = None
    metrics: Optional[List[MetricCategorySetting]] = None
    receivers: Optional[DiagnosticReceivers] = None
    service_bus_rule_id: Optional[str] = None


# ========================
# Server Schema
# ========================


class MySQLServerSpec(CamelModel):
    """Complete configuration surface for one MySQL server deployment."""

    name: str = Field(
        ...,
        min_length=3,
        max_length=63,
        pattern=r"^[a-z0-9][a-z0-9-]*[a-z0-9]$",
        description="Server name",
    )
    location: Optional[str] = Field(None, min_length=1, description="Azure region (defaults to the provisioner region)")
    tags: Dict[str, str] = Field(default_factory=dict, description="Server tags")

    administrator_login: Optional[str] = Field(None, description="Administrator login")
    administrator_login_password: Optional[SecretStr] = Field(None, description="Administrator password")

    backup_retention_days: int = Field(7, ge=7, le=35, description="Backup retention in days")
    create_mode: CreateMode = Field(CreateMode.DEFAULT, description="Server creation mode")
    infrastructure_encryption: EnabledState = Field(EnabledState.DISABLED)
    geo_redundant_backup: EnabledState = Field(EnabledState.DISABLED)
    minimal_tls_version: MinimalTlsVersion = Field(MinimalTlsVersion.TLS1_2)
    public_network_access: EnabledState = Field(EnabledState.ENABLED)
    restore_point_in_time: Optional[str] = Field(None, description="ISO-8601 restore timestamp")
    sku_name: str = Field("GP_Gen5_2", min_length=1, description="SKU name")
    source_server_resource_id: Optional[str] = Field(None, description="Source server for restore/replica")
    storage_autogrow: bool = Field(True, description="Grow storage automatically")
    storage_size_gb: int = Field(5, ge=5, le=16384, alias="storageSizeGB", description="Storage size in GB")
    version: ServerVersion = Field(ServerVersion.V5_7, description="MySQL engine version")

    firewall_rules: List[FirewallRuleSpec] = Field(default_factory=list)
    virtual_network_rules: List[VirtualNetworkRuleSpec] = Field(default_factory=list)
    databases: List[DatabaseSpec] = Field(default_factory=list)
    server_configurations: List[ServerConfigurationEntry] = Field(default_factory=list)
    role_assignments: List[RoleAssignmentSpec] = Field(default_factory=list)
    private_endpoints: List[PrivateEndpointSpec] = Field(default_factory=list)
    diagnostic_settings: Optional[DiagnosticSettingsProperties] = None
    lock: Optional[LockKind] = Field(None, description="Management lock applied to the server")

    @field_validator("restore_point_in_time")
    @classmethod
    def validate_restore_point(cls, value: Optional[str]) -> Optional[str]:
        if value:
            datetime.fromisoformat(value)
        return value
