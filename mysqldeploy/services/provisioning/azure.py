"""
Azure provisioner for mysqldeploy.

Submits composed requests to Azure Resource Manager through the generic
resources API, so the server, its child resources and the extension
resources scoped to it (role assignments, locks, diagnostic settings) all
go through the same PUT-by-ID path.
"""

import logging
from typing import Any, Dict, Tuple

from azure.core.exceptions import (
    AzureError,
    HttpResponseError,
    ServiceRequestError,
    ServiceResponseError,
)
from azure.identity import ClientSecretCredential
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.resource.resources.models import GenericResource, Sku

from mysqldeploy.utils.async_utils import run_in_executor

from .base import BaseProvisioner, ProvisionerConfig
from .composer import DeploymentScope, ResourceRequest
from .errors import ProviderRejected, ProvisionerException, TransientFailure

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset({408, 429})


def classify_azure_error(error: AzureError, resource_id: str) -> ProvisionerException:
    """
    Map an azure-core exception onto the provisioner error taxonomy.

    Throttling, request timeouts, 5xx responses and connection failures are
    transient; every other error response is a rejection and is surfaced
    with the control plane's message unchanged.

    Args:
        error: Exception raised by the SDK
        resource_id: Resource the request was for

    Returns:
        TransientFailure or ProviderRejected
    """
    if isinstance(error, HttpResponseError):
        status_code = error.status_code
        if status_code is not None and (status_code in TRANSIENT_STATUS_CODES or status_code >= 500):
            return TransientFailure(
                error.message,
                provider="azure",
                resource_id=resource_id,
                original_error=error
            )
        return ProviderRejected(
            error.message,
            provider="azure",
            resource_id=resource_id,
            original_error=error,
            status_code=status_code
        )

    if isinstance(error, (ServiceRequestError, ServiceResponseError)):
        return TransientFailure(
            error.message,
            provider="azure",
            resource_id=resource_id,
            original_error=error
        )

    return ProviderRejected(
        error.message,
        provider="azure",
        resource_id=resource_id,
        original_error=error
    )


class AzureProvisioner(BaseProvisioner):
    """Azure Resource Manager provisioner using the generic resources client."""

    enforces_timeout = True

    def __init__(self, config: ProvisionerConfig):
        """
        Initialize Azure provisioner.

        Args:
            config: Provisioner configuration containing:
                - credentials: Dict with subscription_id, resource_group and,
                  unless dry_run is set, tenant_id, client_id, client_secret
        """
        super().__init__(config)

        creds = config.credentials or {}
        self.subscription_id = creds.get('subscription_id')
        self.tenant_id = creds.get('tenant_id')
        self.client_id = creds.get('client_id')
        self.client_secret = creds.get('client_secret')
        self.resource_group = creds.get('resource_group')

        if not all([self.subscription_id, self.resource_group]):
            raise ProvisionerException(
                "Missing required Azure settings: subscription_id, resource_group",
                provider="azure"
            )

        if not config.dry_run and not all([self.tenant_id, self.client_id, self.client_secret]):
            raise ProvisionerException(
                "Missing required Azure credentials: tenant_id, client_id, client_secret",
                provider="azure"
            )

        self._credential = None
        self._resource_client = None

    @property
    def scope(self) -> DeploymentScope:
        return DeploymentScope(
            subscription_id=self.subscription_id,
            resource_group=self.resource_group,
        )

    @property
    def credential(self) -> ClientSecretCredential:
        """Lazy-load service principal credential."""
        if self._credential is None:
            self._credential = ClientSecretCredential(
                tenant_id=self.tenant_id,
                client_id=self.client_id,
                client_secret=self.client_secret
            )
        return self._credential

    @property
    def resource_client(self) -> ResourceManagementClient:
        """Lazy-load Resource Management Client."""
        if self._resource_client is None:
            self._resource_client = ResourceManagementClient(
                self.credential,
                self.subscription_id
            )
        return self._resource_client

    async def submit_request(self, request: ResourceRequest) -> Dict[str, Any]:
        """
        PUT one composed request and wait for the operation to finish.

        Args:
            request: Composed resource request

        Returns:
            Resource state returned by Azure

        Raises:
            ProviderRejected: If Azure rejected the request
            TransientFailure: On throttling, 5xx or connection errors, or when
                the operation has not finished within config.timeout
        """
        try:
            return await run_in_executor(self._put_resource, request)
        except AzureError as e:
            raise classify_azure_error(e, request.resource_id)

    def _put_resource(self, request: ResourceRequest) -> Dict[str, Any]:
        payload = request.payload()
        sku = payload.get('sku')

        parameters = GenericResource(
            location=payload.get('location'),
            tags=payload.get('tags'),
            sku=Sku(**sku) if sku else None,
            properties=payload.get('properties'),
        )

        poller = self.resource_client.resources.begin_create_or_update_by_id(
            request.resource_id,
            request.api_version,
            parameters
        )
        resource = poller.result(timeout=self.config.timeout)
        if not poller.done():
            # result() returns the in-progress resource once the timeout lapses
            raise TransientFailure(
                f"Operation still {poller.status()} after {self.config.timeout}s",
                provider="azure",
                resource_id=request.resource_id
            )
        logger.info(f"Azure accepted {request.resource_type} {request.resource_id}")
        return resource.as_dict() if resource is not None else {}

    async def test_connection(self) -> Tuple[bool, str]:
        """
        Test connectivity to Azure subscription.

        Returns:
            Tuple of (success, message)

        Raises:
            ProvisionerException: If connection test encounters critical error
        """
        try:
            logger.info("Testing Azure connectivity")

            await run_in_executor(
                lambda: next(iter(self.resource_client.resource_groups.list()), None)
            )

            message = f"Successfully connected to Azure subscription {self.subscription_id}"
            logger.info(message)
            return (True, message)

        except AzureError as e:
            message = f"Failed to connect to Azure: {str(e)}"
            logger.error(message)
            raise ProvisionerException(
                message,
                provider="azure",
                original_error=e
            )
