from typing import Any, Dict, List

import pytest

from mysqldeploy.services.provisioning import (
    BaseProvisioner,
    DeploymentScope,
    ProvisionerConfig,
    ResourceRequest,
    parse_server_spec,
)

SUBSCRIPTION_ID = "11111111-2222-3333-4444-555555555555"
RESOURCE_GROUP = "rg-mysql"


class RecordingProvisioner(BaseProvisioner):
    """Provisioner that records submissions instead of calling Azure.

    failures maps a resource ID suffix to a list of exceptions raised on
    successive attempts; once the list is exhausted the request succeeds.
    """

    def __init__(self, config: ProvisionerConfig, failures: Dict[str, List[Exception]] = None):
        super().__init__(config)
        self.failures = {key: list(value) for key, value in (failures or {}).items()}
        self.submitted: List[ResourceRequest] = []
        self.attempts: List[str] = []

    @property
    def scope(self) -> DeploymentScope:
        return DeploymentScope(subscription_id=SUBSCRIPTION_ID, resource_group=RESOURCE_GROUP)

    async def submit_request(self, request: ResourceRequest) -> Dict[str, Any]:
        self.attempts.append(request.resource_id)
        for suffix, errors in self.failures.items():
            if request.resource_id.endswith(suffix) and errors:
                raise errors.pop(0)
        self.submitted.append(request)
        return {"id": request.resource_id, "properties": {}}

    async def test_connection(self):
        return (True, "recording")


@pytest.fixture
def scope():
    return DeploymentScope(subscription_id=SUBSCRIPTION_ID, resource_group=RESOURCE_GROUP)


@pytest.fixture
def server_config():
    return {
        "name": "srv",
        "location": "westeurope",
        "administratorLogin": "dbadmin",
        "administratorLoginPassword": "S3cret-Passw0rd!",
        "tags": {"env": "test"},
    }


@pytest.fixture
def full_server_config(server_config):
    return {
        **server_config,
        "firewallRules": [
            {"name": "office", "startIpAddress": "10.0.0.1", "endIpAddress": "10.0.0.10"},
            {"name": "vpn", "startIpAddress": "10.1.0.1", "endIpAddress": "10.1.0.1"},
        ],
        "virtualNetworkRules": [
            {"name": "app-subnet", "virtualNetworkSubnetId": "/subscriptions/x/subnets/app"},
        ],
        "databases": [{"name": "db1"}, {"name": "db2", "charset": "utf8"}],
        "serverConfigurations": [
            {"name": "max_connections", "value": "500"},
            {"name": "slow_query_log", "value": "ON"},
        ],
        "roleAssignments": [
            {"roleDefinitionIdOrName": "Reader", "principalIds": ["p1", "p2"]},
        ],
        "privateEndpoints": [
            {
                "name": "pe1",
                "groupId": "mysqlServer",
                "subnetId": "/subscriptions/x/subnets/pe",
                "privateDnsZoneId": "/subscriptions/x/privateDnsZones/privatelink.mysql.database.azure.com",
            },
        ],
        "diagnosticSettings": {"receivers": {"workspaceId": "w1"}},
        "lock": "CanNotDelete",
    }


@pytest.fixture
def server_spec(server_config):
    return parse_server_spec(server_config)


@pytest.fixture
def full_server_spec(full_server_config):
    return parse_server_spec(full_server_config)


@pytest.fixture
def provisioner_config():
    return ProvisionerConfig(provider_type="recording", retry_delay=0.0, timeout=5)


@pytest.fixture
def recording_provisioner(provisioner_config):
    return RecordingProvisioner(provisioner_config)
