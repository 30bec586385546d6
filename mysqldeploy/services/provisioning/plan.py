"""
Phased submission plan for a composed deployment.

The server is created first. Every family that only needs the server
goes into the independent phase; families that also need another family
(server configurations need the firewall rules, DNS zone groups need
their private endpoints) go into the dependent phase. The management lock
is applied in a final phase of its own, after everything else succeeded.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Tuple

from mysqldeploy.models.enums import ResourceFamily

from .composer import ComposedDeployment, ResourceRequest
from .errors import DependencyOrderingError

# Submitted one at a time; the control plane serialises operations on these child types
SEQUENTIAL_FAMILIES = frozenset({
    ResourceFamily.FIREWALL_RULES,
    ResourceFamily.DATABASES,
    ResourceFamily.CONFIGURATIONS,
})

FAMILY_DEPENDENCIES: Dict[ResourceFamily, Tuple[ResourceFamily, ...]] = {
    ResourceFamily.SERVER: (),
    ResourceFamily.CONFIGURATIONS: (ResourceFamily.SERVER, ResourceFamily.FIREWALL_RULES),
    ResourceFamily.PRIVATE_DNS_ZONE_GROUPS: (ResourceFamily.SERVER, ResourceFamily.PRIVATE_ENDPOINTS),
}

PHASE_LAYOUT: List[Tuple[str, List[ResourceFamily]]] = [
    ('server', [ResourceFamily.SERVER]),
    ('independent', [
        ResourceFamily.FIREWALL_RULES,
        ResourceFamily.VIRTUAL_NETWORK_RULES,
        ResourceFamily.DATABASES,
        ResourceFamily.ROLE_ASSIGNMENTS,
        ResourceFamily.PRIVATE_ENDPOINTS,
        ResourceFamily.DIAGNOSTIC_SETTINGS,
    ]),
    ('dependent', [
        ResourceFamily.CONFIGURATIONS,
        ResourceFamily.PRIVATE_DNS_ZONE_GROUPS,
    ]),
    # A ReadOnly lock rejects writes to child resources; it must follow every other family
    ('lock', [ResourceFamily.LOCK]),
]


@dataclass
class RequestFamily:
    """
    Requests of one resource family and how they must be submitted.

    Attributes:
        family: Resource family
        requests: Requests in declaration order
        sequential: Submit one request at a time
        depends_on: Families that must have succeeded first
    """
    family: ResourceFamily
    requests: List[ResourceRequest]
    sequential: bool = False
    depends_on: Tuple[ResourceFamily, ...] = ()


@dataclass
class SubmissionPhase:
    name: str
    families: List[RequestFamily] = field(default_factory=list)


@dataclass
class SubmissionPlan:
    """Ordered phases; families inside a phase may run concurrently."""
    phases: List[SubmissionPhase] = field(default_factory=list)

    def families(self) -> Iterator[RequestFamily]:
        for phase in self.phases:
            yield from phase.families

    def family_names(self) -> List[ResourceFamily]:
        return [family.family for family in self.families()]

    def validate(self) -> None:
        """
        Check that every family comes strictly after the families it depends on.

        Raises:
            DependencyOrderingError: If a dependency is in the same or a later phase
        """
        planned = set(self.family_names())
        completed: set = set()

        for phase in self.phases:
            for family in phase.families:
                for dependency in family.depends_on:
                    if dependency in planned and dependency not in completed:
                        raise DependencyOrderingError(
                            f"{family.family.value} is planned in phase '{phase.name}' "
                            f"before its dependency {dependency.value} has completed"
                        )
            completed.update(family.family for family in phase.families)

    def submission_order(self) -> List[ResourceRequest]:
        return [request for family in self.families() for request in family.requests]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'phases': [
                {
                    'name': phase.name,
                    'families': [
                        {
                            'family': family.family.value,
                            'sequential': family.sequential,
                            'dependsOn': [dependency.value for dependency in family.depends_on],
                            'requests': [request.resource_id for request in family.requests],
                        }
                        for family in phase.families
                    ],
                }
                for phase in self.phases
            ]
        }


def build_submission_plan(deployment: ComposedDeployment) -> SubmissionPlan:
    """
    Arrange a composed deployment into submission phases.

    Args:
        deployment: Composed deployment

    Returns:
        Validated SubmissionPlan; empty families and phases are omitted
    """
    requests = deployment.requests_by_family()
    plan = SubmissionPlan()

    for phase_name, family_names in PHASE_LAYOUT:
        phase = SubmissionPhase(name=phase_name)
        for family_name in family_names:
            if not requests[family_name]:
                continue
            if family_name == ResourceFamily.LOCK:
                depends_on = tuple(plan.family_names())
            else:
                depends_on = FAMILY_DEPENDENCIES.get(family_name, (ResourceFamily.SERVER,))
            phase.families.append(RequestFamily(
                family=family_name,
                requests=requests[family_name],
                sequential=family_name in SEQUENTIAL_FAMILIES,
                depends_on=depends_on,
            ))
        if phase.families:
            plan.phases.append(phase)

    plan.validate()
    return plan
