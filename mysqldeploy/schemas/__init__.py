"""mysqldeploy Input Schemas.

This package contains the Pydantic schema definitions used to validate the
server configuration surface before anything is composed or submitted.
"""

from mysqldeploy.schemas.common import CamelModel
from mysqldeploy.schemas.server import (
    DatabaseSpec,
    DiagnosticReceivers,
    DiagnosticSettingsProperties,
    EventHubReceiver,
    FirewallRuleSpec,
    LogCategorySetting,
    MetricCategorySetting,
    MySQLServerSpec,
    PrivateEndpointSpec,
    RoleAssignmentSpec,
    ServerConfigurationEntry,
    VirtualNetworkRuleSpec,
)

__all__ = [
    "CamelModel",
    "DatabaseSpec",
    "DiagnosticReceivers",
    "DiagnosticSettingsProperties",
    "EventHubReceiver",
    "FirewallRuleSpec",
    "LogCategorySetting",
    "MetricCategorySetting",
    "MySQLServerSpec",
    "PrivateEndpointSpec",
    "RoleAssignmentSpec",
    "ServerConfigurationEntry",
    "VirtualNetworkRuleSpec",
]
