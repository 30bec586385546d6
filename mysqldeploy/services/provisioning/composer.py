"""
Request composer for Azure Database for MySQL deployments.

Turns a validated MySQLServerSpec into a ComposedDeployment: one
ResourceRequest for the server and one per child or extension resource,
each carrying the resource ID, type, API version and request body the
control plane expects.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import SecretStr

from mysqldeploy.models.enums import LockKind, ResourceFamily
from mysqldeploy.schemas.server import DiagnosticSettingsProperties, MySQLServerSpec

from .defaults import (
    ResolvedPrivateEndpoint,
    apply_database_defaults,
    apply_private_endpoint_defaults,
    apply_role_assignment_defaults,
)
from .errors import ValidationError
from .resolver import DerivedServerFields, resolve_server_fields

logger = logging.getLogger(__name__)

SERVER_TYPE = "Microsoft.DBforMySQL/servers"
SERVER_API_VERSION = "2017-12-01"
DIAGNOSTIC_SETTINGS_API_VERSION = "2021-05-01-preview"
ROLE_ASSIGNMENT_API_VERSION = "2022-04-01"
PRIVATE_ENDPOINT_API_VERSION = "2023-04-01"
LOCK_API_VERSION = "2020-05-01"

MYSQL_DNS_SUFFIX = "mysql.database.azure.com"
MYSQL_PORT = 3306

ROLE_DEFINITION_SEGMENT = "/providers/microsoft.authorization/roledefinitions/"

BUILTIN_ROLE_IDS = {
    'Owner': '8e3af657-a8ff-443c-a75c-2fe8c4bcb635',
    'Contributor': 'b24988ac-6180-42a0-ab88-20f7382dd24c',
    'Reader': 'acdd72a7-3385-48ef-bd42-f606fba81ae7',
    'User Access Administrator': '18d7d88d-d35e-4fb5-a5c3-7773c20a72d9',
    'Role Based Access Control Administrator': 'f58310d9-a9f6-439a-9e8d-f62e7b41a168',
    'Log Analytics Contributor': '92aaf0da-9dab-42b6-94a3-d43ce8d16293',
    'Log Analytics Reader': '73c42c96-874c-492b-b04d-ab87d138a893',
    'Monitoring Contributor': '749f88d5-cbae-40b8-bcfc-e573ddc772fa',
    'Monitoring Metrics Publisher': '3913510d-42f4-4e42-8a64-420c390055eb',
    'Monitoring Reader': '43d0d8ad-25c7-4714-9337-8ba259a9fe05',
}

LOCK_NOTES = {
    LockKind.CAN_NOT_DELETE: 'Cannot delete resource or child resources.',
    LockKind.READ_ONLY: 'Cannot delete or modify the resource or child resources.',
}


@dataclass(frozen=True)
class DeploymentScope:
    """Subscription and resource group the server is deployed into."""
    subscription_id: str
    resource_group: str

    @property
    def resource_group_id(self) -> str:
        return f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group}"


@dataclass
class ResourceRequest:
    """
    One create-or-update request for the control plane.

    Attributes:
        family: Request family used for ordering
        name: Resource name
        resource_id: Fully qualified resource ID the request is PUT to
        resource_type: Azure resource type
        api_version: API version for the PUT
        body: Request body; secrets are held as SecretStr
    """
    family: ResourceFamily
    name: str
    resource_id: str
    resource_type: str
    api_version: str
    body: Dict[str, Any]

    def payload(self) -> Dict[str, Any]:
        """Request body with secrets revealed, for submission only."""
        return _render(self.body, reveal_secrets=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'family': self.family.value,
            'name': self.name,
            'id': self.resource_id,
            'type': self.resource_type,
            'apiVersion': self.api_version,
            'body': _render(self.body, reveal_secrets=False),
        }


@dataclass
class ComposedDeployment:
    """Fully populated description of a server and every resource created under it."""
    server: ResourceRequest
    derived: DerivedServerFields
    fully_qualified_domain_name: str
    firewall_rules: List[ResourceRequest] = field(default_factory=list)
    virtual_network_rules: List[ResourceRequest] = field(default_factory=list)
    databases: List[ResourceRequest] = field(default_factory=list)
    configurations: List[ResourceRequest] = field(default_factory=list)
    role_assignments: List[ResourceRequest] = field(default_factory=list)
    private_endpoints: List[ResourceRequest] = field(default_factory=list)
    private_dns_zone_groups: List[ResourceRequest] = field(default_factory=list)
    resolved_private_endpoints: List[ResolvedPrivateEndpoint] = field(default_factory=list)
    diagnostic_settings: Optional[ResourceRequest] = None
    lock: Optional[ResourceRequest] = None

    @property
    def resource_id(self) -> str:
        return self.server.resource_id

    def requests_by_family(self) -> Dict[ResourceFamily, List[ResourceRequest]]:
        return {
            ResourceFamily.SERVER: [self.server],
            ResourceFamily.FIREWALL_RULES: list(self.firewall_rules),
            ResourceFamily.VIRTUAL_NETWORK_RULES: list(self.virtual_network_rules),
            ResourceFamily.DATABASES: list(self.databases),
            ResourceFamily.CONFIGURATIONS: list(self.configurations),
            ResourceFamily.ROLE_ASSIGNMENTS: list(self.role_assignments),
            ResourceFamily.PRIVATE_ENDPOINTS: list(self.private_endpoints),
            ResourceFamily.PRIVATE_DNS_ZONE_GROUPS: list(self.private_dns_zone_groups),
            ResourceFamily.DIAGNOSTIC_SETTINGS: [self.diagnostic_settings] if self.diagnostic_settings else [],
            ResourceFamily.LOCK: [self.lock] if self.lock else [],
        }

    def outputs(self) -> Dict[str, str]:
        return {
            'resourceId': self.resource_id,
            'fullyQualifiedDomainName': self.fully_qualified_domain_name,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'outputs': self.outputs(),
            'resources': {
                family.value: [request.to_dict() for request in requests]
                for family, requests in self.requests_by_family().items()
                if requests
            },
        }


def _render(value: Any, reveal_secrets: bool) -> Any:
    if isinstance(value, SecretStr):
        return value.get_secret_value() if reveal_secrets else str(value)
    if isinstance(value, dict):
        return {key: _render(item, reveal_secrets) for key, item in value.items()}
    if isinstance(value, list):
        return [_render(item, reveal_secrets) for item in value]
    return value


def build_server_resource_id(scope: DeploymentScope, server_name: str) -> str:
    return f"{scope.resource_group_id}/providers/{SERVER_TYPE}/{server_name}"


def resolve_role_definition_id(role_definition_id_or_name: str, subscription_id: str) -> str:
    """
    Resolve a built-in role name or pass a role definition ID through.

    Raises:
        ValidationError: If the value is neither an ID nor a known built-in role
    """
    if ROLE_DEFINITION_SEGMENT in role_definition_id_or_name.lower():
        return role_definition_id_or_name

    role_guid = BUILTIN_ROLE_IDS.get(role_definition_id_or_name)
    if role_guid is None:
        raise ValidationError(
            f"Unknown role: {role_definition_id_or_name}",
            details={'roleDefinitionIdOrName': f"not a built-in role or role definition ID: {role_definition_id_or_name}"}
        )
    return (
        f"/subscriptions/{subscription_id}/providers/"
        f"Microsoft.Authorization/roleDefinitions/{role_guid}"
    )


def _server_request(
    spec: MySQLServerSpec,
    scope: DeploymentScope,
    derived: DerivedServerFields,
    tags: Dict[str, str]
) -> ResourceRequest:
    properties = {
        'createMode': spec.create_mode.value,
        'administratorLogin': spec.administrator_login,
        'administratorLoginPassword': spec.administrator_login_password,
        'infrastructureEncryption': spec.infrastructure_encryption.value,
        'minimalTlsVersion': spec.minimal_tls_version.value,
        'publicNetworkAccess': spec.public_network_access.value,
        'sslEnforcement': derived.ssl_enforcement,
        'storageProfile': {
            'backupRetentionDays': spec.backup_retention_days,
            'geoRedundantBackup': spec.geo_redundant_backup.value,
            'storageAutogrow': derived.storage_autogrow,
            'storageMB': spec.storage_size_gb * 1024,
        },
        'version': spec.version.value,
        'sourceServerId': derived.source_server_id,
        'restorePointInTime': derived.restore_point_in_time,
    }

    return ResourceRequest(
        family=ResourceFamily.SERVER,
        name=spec.name,
        resource_id=build_server_resource_id(scope, spec.name),
        resource_type=SERVER_TYPE,
        api_version=SERVER_API_VERSION,
        body={
            'location': spec.location,
            'tags': tags,
            'sku': {'name': spec.sku_name},
            'properties': properties,
        },
    )


def _child_request(
    family: ResourceFamily,
    server_id: str,
    child_type: str,
    name: str,
    properties: Dict[str, Any]
) -> ResourceRequest:
    return ResourceRequest(
        family=family,
        name=name,
        resource_id=f"{server_id}/{child_type}/{name}",
        resource_type=f"{SERVER_TYPE}/{child_type}",
        api_version=SERVER_API_VERSION,
        body={'properties': properties},
    )


def _diagnostic_settings_request(
    properties: DiagnosticSettingsProperties,
    server_name: str,
    server_id: str
) -> ResourceRequest:
    receivers = properties.receivers
    event_hub = receivers.event_hub

    if properties.logs is None:
        logs = [{'categoryGroup': 'allLogs', 'enabled': True}]
    else:
        logs = [
            log.model_dump(by_alias=True, exclude_none=True)
            for log in properties.logs
        ]

    if properties.metrics is None:
        metrics = [{'category': 'AllMetrics', 'enabled': True}]
    else:
        metrics = [
            metric.model_dump(by_alias=True, exclude_none=True)
            for metric in properties.metrics
        ]

    destination_type = receivers.log_analytics_destination_type
    name = properties.name or f"{server_name}-diagnosticSettings"

    return ResourceRequest(
        family=ResourceFamily.DIAGNOSTIC_SETTINGS,
        name=name,
        resource_id=f"{server_id}/providers/Microsoft.Insights/diagnosticSettings/{name}",
        resource_type='Microsoft.Insights/diagnosticSettings',
        api_version=DIAGNOSTIC_SETTINGS_API_VERSION,
        body={
            'properties': {
                'workspaceId': receivers.workspace_id or None,
                'eventHubAuthorizationRuleId': (event_hub.authorization_rule_id or None) if event_hub else None,
                'eventHubName': (event_hub.name or None) if event_hub else None,
                'storageAccountId': receivers.storage_account_id or None,
                'marketplacePartnerId': receivers.marketplace_partner_id or None,
                'logAnalyticsDestinationType': destination_type.value if destination_type else None,
                'serviceBusRuleId': properties.service_bus_rule_id,
                'logs': logs,
                'metrics': metrics,
            }
        },
    )


def _private_endpoint_requests(
    endpoint: ResolvedPrivateEndpoint,
    scope: DeploymentScope,
    location: str,
    default_tags: Dict[str, str]
) -> List[ResourceRequest]:
    endpoint_id = (
        f"{scope.resource_group_id}/providers/"
        f"Microsoft.Network/privateEndpoints/{endpoint.name}"
    )
    connection = {
        'name': endpoint.name,
        'properties': {
            'privateLinkServiceId': endpoint.private_link_service_id,
            'groupIds': [endpoint.group_id],
        },
    }

    requests = [
        ResourceRequest(
            family=ResourceFamily.PRIVATE_ENDPOINTS,
            name=endpoint.name,
            resource_id=endpoint_id,
            resource_type='Microsoft.Network/privateEndpoints',
            api_version=PRIVATE_ENDPOINT_API_VERSION,
            body={
                'location': location,
                'tags': endpoint.tags or default_tags,
                'properties': {
                    'subnet': {'id': endpoint.subnet_id},
                    'privateLinkServiceConnections': [] if endpoint.manual_approval_enabled else [connection],
                    'manualPrivateLinkServiceConnections': [connection] if endpoint.manual_approval_enabled else [],
                },
            },
        )
    ]

    for group in endpoint.private_dns_zone_groups:
        zone_name = group.private_dns_zone_id.rstrip('/').split('/')[-1]
        requests.append(ResourceRequest(
            family=ResourceFamily.PRIVATE_DNS_ZONE_GROUPS,
            name=f"{endpoint.name}/{group.name}",
            resource_id=f"{endpoint_id}/privateDnsZoneGroups/{group.name}",
            resource_type='Microsoft.Network/privateEndpoints/privateDnsZoneGroups',
            api_version=PRIVATE_ENDPOINT_API_VERSION,
            body={
                'properties': {
                    'privateDnsZoneConfigs': [
                        {
                            'name': zone_name.replace('.', '-'),
                            'properties': {'privateDnsZoneId': group.private_dns_zone_id},
                        }
                    ]
                }
            },
        ))

    return requests


def compose_deployment(
    spec: MySQLServerSpec,
    scope: DeploymentScope,
    default_tags: Optional[Dict[str, str]] = None
) -> ComposedDeployment:
    """
    Compose every request needed to deploy a server.

    Args:
        spec: Validated server specification
        scope: Subscription and resource group to deploy into
        default_tags: Tags applied underneath the user-supplied tags

    Returns:
        ComposedDeployment with one request per resource; diagnostic
        settings and lock are None when not requested

    Raises:
        ValidationError: If the spec has no location or a role assignment
            names an unknown role
    """
    if not spec.location:
        raise ValidationError(
            f"No location for server {spec.name}",
            details={'location': 'required when no default region is configured'}
        )

    derived = resolve_server_fields(spec)
    tags = {**(default_tags or {}), **spec.tags}

    server = _server_request(spec, scope, derived, tags)
    server_id = server.resource_id

    deployment = ComposedDeployment(
        server=server,
        derived=derived,
        fully_qualified_domain_name=f"{spec.name}.{MYSQL_DNS_SUFFIX}",
    )

    for rule in spec.firewall_rules:
        deployment.firewall_rules.append(_child_request(
            ResourceFamily.FIREWALL_RULES, server_id, 'firewallRules', rule.name,
            {'startIpAddress': rule.start_ip_address, 'endIpAddress': rule.end_ip_address},
        ))

    for rule in spec.virtual_network_rules:
        deployment.virtual_network_rules.append(_child_request(
            ResourceFamily.VIRTUAL_NETWORK_RULES, server_id, 'virtualNetworkRules', rule.name,
            {
                'ignoreMissingVnetServiceEndpoint': rule.ignore_missing_vnet_service_endpoint,
                'virtualNetworkSubnetId': rule.virtual_network_subnet_id,
            },
        ))

    for database in map(apply_database_defaults, spec.databases):
        deployment.databases.append(_child_request(
            ResourceFamily.DATABASES, server_id, 'databases', database.name,
            {'charset': database.charset, 'collation': database.collation},
        ))

    for entry in spec.server_configurations:
        deployment.configurations.append(_child_request(
            ResourceFamily.CONFIGURATIONS, server_id, 'configurations', entry.name,
            {'value': entry.value, 'source': 'user-override'},
        ))

    for assignment in map(apply_role_assignment_defaults, spec.role_assignments):
        role_definition_id = resolve_role_definition_id(
            assignment.role_definition_id_or_name, scope.subscription_id
        )
        for principal_id in dict.fromkeys(assignment.principal_ids):
            name = str(uuid.uuid5(uuid.NAMESPACE_URL, f"{server_id}/{principal_id}/{role_definition_id}"))
            deployment.role_assignments.append(ResourceRequest(
                family=ResourceFamily.ROLE_ASSIGNMENTS,
                name=name,
                resource_id=f"{server_id}/providers/Microsoft.Authorization/roleAssignments/{name}",
                resource_type='Microsoft.Authorization/roleAssignments',
                api_version=ROLE_ASSIGNMENT_API_VERSION,
                body={
                    'properties': {
                        'roleDefinitionId': role_definition_id,
                        'principalId': principal_id,
                        # principalType is an enum on the API side; empty means unset
                        'principalType': assignment.principal_type or None,
                        'description': assignment.description,
                    }
                },
            ))

    for endpoint in spec.private_endpoints:
        resolved = apply_private_endpoint_defaults(endpoint, spec.name, server_id)
        deployment.resolved_private_endpoints.append(resolved)
        for request in _private_endpoint_requests(resolved, scope, spec.location, tags):
            if request.family == ResourceFamily.PRIVATE_DNS_ZONE_GROUPS:
                deployment.private_dns_zone_groups.append(request)
            else:
                deployment.private_endpoints.append(request)

    if derived.diagnostic_settings_enabled:
        deployment.diagnostic_settings = _diagnostic_settings_request(
            spec.diagnostic_settings, spec.name, server_id
        )

    if spec.lock is not None:
        lock_name = f"{spec.name}-{spec.lock.value}-lock"
        deployment.lock = ResourceRequest(
            family=ResourceFamily.LOCK,
            name=lock_name,
            resource_id=f"{server_id}/providers/Microsoft.Authorization/locks/{lock_name}",
            resource_type='Microsoft.Authorization/locks',
            api_version=LOCK_API_VERSION,
            body={'properties': {'level': spec.lock.value, 'notes': LOCK_NOTES[spec.lock]}},
        )

    logger.info(
        f"Composed deployment for {server_id}: "
        f"{sum(len(requests) for requests in deployment.requests_by_family().values())} requests"
    )
    return deployment
