"""
Base provisioner abstract class for MySQL server deployments.

This module defines the interface every control-plane transport implements
and the shared flow on top of it: validate, compose, plan, submit.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from mysqldeploy.schemas.server import MySQLServerSpec

from .composer import MYSQL_PORT, ComposedDeployment, DeploymentScope, ResourceRequest, compose_deployment
from .errors import ProvisionerException
from .executor import PlanExecutor, SubmissionReport
from .plan import SubmissionPlan, build_submission_plan
from .resolver import validate_server_spec

logger = logging.getLogger(__name__)


@dataclass
class ProvisionerConfig:
    """
    Common configuration for all provisioners.

    Attributes:
        provider_type: Type of provider (azure)
        credentials: Provider-specific credential dictionary
        region: Region used when a server spec names no location
        timeout: Per-request timeout in seconds
        retry_attempts: Number of retries for transient failures
        retry_delay: Initial delay between retries in seconds
        retry_backoff: Multiplier applied to the delay after each retry
        max_concurrency: Maximum concurrent requests within a phase
        dry_run: If True, compose and plan without submitting
        strict_validation: Reject inconsistent configurations before composing
        tags: Default tags applied underneath user-supplied tags
    """
    provider_type: str
    credentials: Dict[str, Any] = field(default_factory=dict)
    region: Optional[str] = None
    timeout: int = 300
    retry_attempts: int = 3
    retry_delay: float = 1.0
    retry_backoff: float = 2.0
    max_concurrency: int = 5
    dry_run: bool = False
    strict_validation: bool = True
    tags: Dict[str, str] = field(default_factory=dict)


class BaseProvisioner(ABC):
    """
    Abstract base class for control-plane provisioners.

    Subclasses supply the deployment scope and the transport for a single
    request; composition, planning and submission ordering are shared.
    """

    # Transports that stop waiting on their own after config.timeout
    enforces_timeout = False

    def __init__(self, config: ProvisionerConfig):
        """
        Initialize provisioner with configuration.

        Args:
            config: Provisioner configuration
        """
        self.config = config

    @property
    @abstractmethod
    def scope(self) -> DeploymentScope:
        """Subscription and resource group requests are composed for."""
        pass

    @abstractmethod
    async def submit_request(self, request: ResourceRequest) -> Dict[str, Any]:
        """
        Create or update one resource on the control plane.

        Args:
            request: Composed resource request

        Returns:
            Resource state returned by the control plane

        Raises:
            ProviderRejected: If the control plane rejected the request
            TransientFailure: On timeouts, throttling or connection errors
        """
        pass

    @abstractmethod
    async def test_connection(self) -> Tuple[bool, str]:
        """
        Test connectivity to the control plane.

        Returns:
            Tuple of (success, message)

        Raises:
            ProvisionerException: If connection test encounters critical error
        """
        pass

    def compose(self, spec: MySQLServerSpec) -> ComposedDeployment:
        """
        Validate (when strict) and compose every request for a server.

        A spec without a location is deployed to config.region.

        Raises:
            ValidationError: If the configuration is inconsistent or no
                location can be determined
        """
        if not spec.location and self.config.region:
            spec = spec.model_copy(update={'location': self.config.region})

        if self.config.strict_validation:
            validate_server_spec(spec)

        default_tags = {'ManagedBy': 'mysqldeploy', **self.config.tags}
        return compose_deployment(spec, self.scope, default_tags=default_tags)

    def plan(self, spec: MySQLServerSpec) -> Tuple[ComposedDeployment, SubmissionPlan]:
        deployment = self.compose(spec)
        return deployment, build_submission_plan(deployment)

    def executor(self) -> PlanExecutor:
        return PlanExecutor(
            self.submit_request,
            max_concurrency=self.config.max_concurrency,
            retry_attempts=self.config.retry_attempts,
            retry_delay=self.config.retry_delay,
            retry_backoff=self.config.retry_backoff,
            timeout=None if self.enforces_timeout else self.config.timeout,
        )

    async def create_server(self, spec: MySQLServerSpec) -> Dict[str, Any]:
        """
        Deploy a MySQL server and all of its child resources.

        Args:
            spec: Validated server specification

        Returns:
            Dictionary containing:
                - provider_resource_id: Server resource ID
                - endpoint: Fully qualified domain name
                - port: Connection port
                - status: planned (dry run) or created
                - created_at: Timestamp
                - metadata: Plan and submission report

        Raises:
            ValidationError: If the configuration is rejected locally
            PartialSubmissionError: If any request failed or was skipped
        """
        deployment, plan = self.plan(spec)

        result = {
            'provider_resource_id': deployment.resource_id,
            'endpoint': deployment.fully_qualified_domain_name,
            'port': MYSQL_PORT,
            'status': 'planned',
            'created_at': datetime.now(timezone.utc).isoformat(),
            'metadata': {
                'server_name': spec.name,
                'resource_group': self.scope.resource_group,
                'location': deployment.server.body['location'],
                'plan': plan.to_dict(),
            },
        }

        if self.config.dry_run:
            logger.info(f"Dry run: planned {len(plan.submission_order())} requests for {deployment.resource_id}")
            return result

        report = await self.executor().execute(plan)
        report.raise_for_failures(provider=self.config.provider_type)

        result['status'] = 'created'
        result['endpoint'] = self._server_fqdn(deployment, report)
        result['metadata']['submission'] = report.summary()
        logger.info(f"Created MySQL server {deployment.resource_id}")
        return result

    def _server_fqdn(self, deployment: ComposedDeployment, report: SubmissionReport) -> str:
        outcome = report.outcome_for(deployment.resource_id)
        response = (outcome.response if outcome else None) or {}
        properties = response.get('properties') or {}
        return properties.get('fullyQualifiedDomainName') or deployment.fully_qualified_domain_name


def get_provisioner(provider_type: str, config: Dict[str, Any]) -> BaseProvisioner:
    """
    Factory function to instantiate the appropriate provisioner.

    Args:
        provider_type: Type of provider (azure)
        config: Configuration dictionary for the provisioner

    Returns:
        Instantiated provisioner implementation

    Raises:
        ProvisionerException: If provider_type is unknown or instantiation fails

    Examples:
        >>> config = {'credentials': {...}, 'region': 'westeurope'}
        >>> provisioner = get_provisioner('azure', config)
        >>> result = await provisioner.create_server(spec)
    """
    provider_type = provider_type.lower()

    provisioner_config = ProvisionerConfig(
        provider_type=provider_type,
        **config
    )

    # Import providers lazily to avoid circular dependencies
    if provider_type == 'azure':
        from .azure import AzureProvisioner
        return AzureProvisioner(provisioner_config)
    else:
        raise ProvisionerException(
            f"Unknown provider type: {provider_type}",
            provider=provider_type
        )
