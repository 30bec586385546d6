"""mysqldeploy Enumeration Types"""

from enum import Enum


class CreateMode(Enum):
    """Server creation modes"""
    DEFAULT = "Default"
    GEO_RESTORE = "GeoRestore"
    POINT_IN_TIME_RESTORE = "PointInTimeRestore"
    REPLICA = "Replica"


class MinimalTlsVersion(Enum):
    """Minimum TLS versions accepted by the server"""
    TLS1_0 = "TLS1_0"
    TLS1_1 = "TLS1_1"
    TLS1_2 = "TLS1_2"
    TLS_ENFORCEMENT_DISABLED = "TLSEnforcementDisabled"


class EnabledState(Enum):
    """Enabled/Disabled switch used throughout the server properties"""
    ENABLED = "Enabled"
    DISABLED = "Disabled"


class ServerVersion(Enum):
    """Supported MySQL engine versions"""
    V5_6 = "5.6"
    V5_7 = "5.7"
    V8_0 = "8.0"


class LockKind(Enum):
    """Management lock levels"""
    CAN_NOT_DELETE = "CanNotDelete"
    READ_ONLY = "ReadOnly"


class LogAnalyticsDestinationType(Enum):
    """Log Analytics table layout for diagnostic settings"""
    DEDICATED = "Dedicated"
    AZURE_DIAGNOSTICS = "AzureDiagnostics"


class ResourceFamily(Enum):
    """Groups of requests submitted together"""
    SERVER = "server"
    FIREWALL_RULES = "firewall_rules"
    VIRTUAL_NETWORK_RULES = "virtual_network_rules"
    DATABASES = "databases"
    CONFIGURATIONS = "configurations"
    ROLE_ASSIGNMENTS = "role_assignments"
    PRIVATE_ENDPOINTS = "private_endpoints"
    PRIVATE_DNS_ZONE_GROUPS = "private_dns_zone_groups"
    DIAGNOSTIC_SETTINGS = "diagnostic_settings"
    LOCK = "lock"


class SubmissionStatus(Enum):
    """Outcome of a single request submission"""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
