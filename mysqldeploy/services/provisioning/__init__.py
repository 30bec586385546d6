"""
Provisioning services for Azure Database for MySQL deployments.

This package resolves a flat server configuration into derived values,
composes one control-plane request per resource, arranges the requests
into a phased submission plan and submits it.

Supported providers:
- Azure (Resource Manager)
"""

from .base import (
    BaseProvisioner,
    ProvisionerConfig,
    get_provisioner,
)
from .composer import (
    ComposedDeployment,
    DeploymentScope,
    ResourceRequest,
    compose_deployment,
)
from .errors import (
    DependencyOrderingError,
    PartialSubmissionError,
    ProviderRejected,
    ProvisionerException,
    TransientFailure,
    ValidationError,
)
from .executor import PlanExecutor, SubmissionOutcome, SubmissionReport
from .plan import RequestFamily, SubmissionPhase, SubmissionPlan, build_submission_plan
from .resolver import (
    DerivedServerFields,
    parse_server_spec,
    resolve_server_fields,
    validate_server_spec,
)

__all__ = [
    'BaseProvisioner',
    'ProvisionerConfig',
    'get_provisioner',
    'ComposedDeployment',
    'DeploymentScope',
    'ResourceRequest',
    'compose_deployment',
    'DependencyOrderingError',
    'PartialSubmissionError',
    'ProviderRejected',
    'ProvisionerException',
    'TransientFailure',
    'ValidationError',
    'PlanExecutor',
    'SubmissionOutcome',
    'SubmissionReport',
    'RequestFamily',
    'SubmissionPhase',
    'SubmissionPlan',
    'build_submission_plan',
    'DerivedServerFields',
    'parse_server_spec',
    'resolve_server_fields',
    'validate_server_spec',
]
