import pytest

from mysqldeploy import create_app
from mysqldeploy.services.provisioning import ProviderRejected, ProvisionerConfig

from .conftest import RecordingProvisioner


@pytest.fixture
def app():
    return create_app('testing')


@pytest.fixture
def client(app):
    return app.test_client()


def use_recording_provisioner(app, failures=None):
    created = []

    def factory(provider_type, settings):
        provisioner = RecordingProvisioner(
            ProvisionerConfig(provider_type=provider_type, **settings), failures=failures
        )
        created.append(provisioner)
        return provisioner

    app.config['PROVISIONER_DRY_RUN'] = False
    app.extensions['provisioner_factory'] = factory
    return created


def test_health(client):
    response = client.get('/api/v1/health')

    assert response.status_code == 200
    assert response.get_json()['data']['status'] == 'healthy'


def test_version(client):
    assert client.get('/api/version').get_json() == {'version': '0.1.0'}


def test_compose_returns_redacted_requests(client, full_server_config):
    response = client.post('/api/v1/mysql/compose', json=full_server_config)
    body = response.get_json()

    assert response.status_code == 200
    data = body['data']
    assert data['outputs']['fullyQualifiedDomainName'] == 'srv.mysql.database.azure.com'
    assert data['outputs']['resourceId'] == (
        '/subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/rg-test/'
        'providers/Microsoft.DBforMySQL/servers/srv'
    )
    server = data['resources']['server'][0]
    assert server['body']['properties']['administratorLoginPassword'] == '**********'
    assert len(data['resources']['role_assignments']) == 2
    assert [phase['name'] for phase in data['plan']['phases']] == ['server', 'independent', 'dependent', 'lock']


def test_compose_rejects_invalid_config(client, server_config):
    response = client.post('/api/v1/mysql/compose', json={**server_config, 'backupRetentionDays': 40})
    body = response.get_json()

    assert response.status_code == 422
    assert body['success'] is False
    assert 'backupRetentionDays' in body['validation_errors']


def test_compose_rejects_inconsistent_config(client, server_config):
    response = client.post('/api/v1/mysql/compose', json={**server_config, 'createMode': 'GeoRestore'})

    assert response.status_code == 422
    assert 'sourceServerResourceId' in response.get_json()['validation_errors']


def test_compose_requires_json_object(client):
    response = client.post('/api/v1/mysql/compose', data='not json', content_type='text/plain')
    assert response.status_code == 400

    response = client.post('/api/v1/mysql/compose', json=['srv'])
    assert response.status_code == 400


def test_deploy_in_dry_run_mode_plans_only(client, server_config):
    response = client.post('/api/v1/mysql/servers', json=server_config)
    body = response.get_json()

    assert response.status_code == 200
    assert body['data']['status'] == 'planned'


def test_deploy_submits_plan(app, client, full_server_config):
    created = use_recording_provisioner(app)

    response = client.post('/api/v1/mysql/servers', json=full_server_config)
    body = response.get_json()

    assert response.status_code == 201
    assert body['data']['status'] == 'created'
    assert body['data']['port'] == 3306
    assert len(created[0].submitted) == len(body['data']['metadata']['submission']['succeeded'])


def test_deploy_partial_failure(app, client, full_server_config):
    use_recording_provisioner(app, failures={
        'firewallRules/vpn': [ProviderRejected("invalid range", status_code=400)],
    })

    response = client.post('/api/v1/mysql/servers', json=full_server_config)
    body = response.get_json()

    assert response.status_code == 502
    assert [item['name'] for item in body['details']['failed']] == ['vpn']
    assert len(body['details']['skipped']) == 3


def test_unknown_route(client):
    assert client.get('/api/v1/nothing').status_code == 404
