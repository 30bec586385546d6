"""
Default filling for optional fields of list-typed inputs.

Each list element type has exactly one defaulting function so the rule for
a missing charset, principal type or approval flag lives in one place.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from mysqldeploy.schemas.server import DatabaseSpec, PrivateEndpointSpec, RoleAssignmentSpec

DEFAULT_CHARSET = "utf32"
DEFAULT_COLLATION = "utf32_general_ci"
DEFAULT_DNS_ZONE_GROUP_NAME = "default"


@dataclass(frozen=True)
class ResolvedDatabase:
    name: str
    charset: str
    collation: str


@dataclass(frozen=True)
class ResolvedRoleAssignment:
    role_definition_id_or_name: str
    principal_ids: List[str]
    principal_type: str
    description: str


@dataclass(frozen=True)
class PrivateDnsZoneGroup:
    name: str
    private_dns_zone_id: str


@dataclass(frozen=True)
class ResolvedPrivateEndpoint:
    """Private endpoint with its name prefixed and its link to the server filled in."""
    name: str
    group_id: str
    subnet_id: str
    private_link_service_id: str
    manual_approval_enabled: bool
    private_dns_zone_groups: List[PrivateDnsZoneGroup] = field(default_factory=list)
    tags: Dict[str, str] = field(default_factory=dict)


def apply_database_defaults(database: DatabaseSpec) -> ResolvedDatabase:
    return ResolvedDatabase(
        name=database.name,
        charset=database.charset or DEFAULT_CHARSET,
        collation=database.collation or DEFAULT_COLLATION,
    )


def apply_role_assignment_defaults(assignment: RoleAssignmentSpec) -> ResolvedRoleAssignment:
    return ResolvedRoleAssignment(
        role_definition_id_or_name=assignment.role_definition_id_or_name,
        principal_ids=list(assignment.principal_ids),
        principal_type=assignment.principal_type or "",
        description=assignment.description or "",
    )


def derive_private_dns_zone_groups(private_dns_zone_id: Optional[str]) -> List[PrivateDnsZoneGroup]:
    """Empty unless a zone ID was supplied, then a single group named 'default'."""
    if not private_dns_zone_id:
        return []
    return [PrivateDnsZoneGroup(name=DEFAULT_DNS_ZONE_GROUP_NAME, private_dns_zone_id=private_dns_zone_id)]


def apply_private_endpoint_defaults(
    endpoint: PrivateEndpointSpec,
    server_name: str,
    server_resource_id: str
) -> ResolvedPrivateEndpoint:
    """
    Fill defaults and derived fields for one private endpoint.

    Args:
        endpoint: Endpoint as supplied by the user
        server_name: Name of the parent server, used as name prefix
        server_resource_id: Parent server ID the endpoint links to

    Returns:
        ResolvedPrivateEndpoint named "<server_name>-<endpoint name>"
    """
    return ResolvedPrivateEndpoint(
        name=f"{server_name}-{endpoint.name}",
        group_id=endpoint.group_id,
        subnet_id=endpoint.subnet_id,
        private_link_service_id=server_resource_id,
        manual_approval_enabled=bool(endpoint.manual_approval_enabled),
        private_dns_zone_groups=derive_private_dns_zone_groups(endpoint.private_dns_zone_id),
        tags=dict(endpoint.tags),
    )
