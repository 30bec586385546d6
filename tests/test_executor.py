import asyncio

import pytest

from mysqldeploy.models.enums import ResourceFamily, SubmissionStatus
from mysqldeploy.services.provisioning import (
    DependencyOrderingError,
    PlanExecutor,
    ProviderRejected,
    SubmissionReport,
    TransientFailure,
    build_submission_plan,
    compose_deployment,
)

from .conftest import RecordingProvisioner


def make_executor(provisioner, **kwargs):
    options = {'retry_attempts': 3, 'retry_delay': 0.0, 'timeout': 5}
    options.update(kwargs)
    return PlanExecutor(provisioner.submit_request, **options)


@pytest.fixture
def full_plan(full_server_spec, scope):
    return build_submission_plan(compose_deployment(full_server_spec, scope))


@pytest.mark.asyncio
async def test_execute_submits_every_request_in_order(recording_provisioner, full_plan):
    report = await make_executor(recording_provisioner).execute(full_plan)

    assert report.ok
    assert len(report.succeeded) == len(full_plan.submission_order())

    submitted = [request.family for request in recording_provisioner.submitted]
    assert submitted[0] == ResourceFamily.SERVER
    last_rule = max(i for i, family in enumerate(submitted) if family == ResourceFamily.FIREWALL_RULES)
    assert last_rule < submitted.index(ResourceFamily.CONFIGURATIONS)
    last_endpoint = max(i for i, family in enumerate(submitted) if family == ResourceFamily.PRIVATE_ENDPOINTS)
    assert last_endpoint < submitted.index(ResourceFamily.PRIVATE_DNS_ZONE_GROUPS)


@pytest.mark.asyncio
async def test_sequential_family_keeps_declaration_order(recording_provisioner, full_plan):
    await make_executor(recording_provisioner).execute(full_plan)

    rules = [r.name for r in recording_provisioner.submitted if r.family == ResourceFamily.FIREWALL_RULES]
    configurations = [r.name for r in recording_provisioner.submitted if r.family == ResourceFamily.CONFIGURATIONS]
    assert rules == ['office', 'vpn']
    assert configurations == ['max_connections', 'slow_query_log']


@pytest.mark.asyncio
async def test_transient_failures_are_retried(provisioner_config, full_plan):
    provisioner = RecordingProvisioner(provisioner_config, failures={
        'databases/db1': [TransientFailure("throttled"), TransientFailure("throttled")],
    })
    report = await make_executor(provisioner).execute(full_plan)

    assert report.ok
    outcome = next(o for o in report.outcomes if o.request.resource_id.endswith('databases/db1'))
    assert outcome.status == SubmissionStatus.SUCCEEDED
    assert outcome.attempts == 3


@pytest.mark.asyncio
async def test_transient_failures_exhaust_retries(provisioner_config, full_plan):
    provisioner = RecordingProvisioner(provisioner_config, failures={
        'virtualNetworkRules/app-subnet': [TransientFailure("unavailable")] * 5,
    })
    report = await make_executor(provisioner, retry_attempts=2).execute(full_plan)

    assert [o.request.name for o in report.failed] == ['app-subnet']
    assert report.failed[0].attempts == 3
    assert isinstance(report.failed[0].error, TransientFailure)


@pytest.mark.asyncio
async def test_rejection_is_not_retried_and_stops_sequential_family(provisioner_config, full_plan):
    provisioner = RecordingProvisioner(provisioner_config, failures={
        'firewallRules/office': [ProviderRejected("invalid range", status_code=400)],
    })
    report = await make_executor(provisioner).execute(full_plan)

    assert not report.ok
    assert [o.request.name for o in report.failed] == ['office']
    assert report.failed[0].attempts == 1

    skipped = {o.request.name for o in report.skipped}
    assert skipped == {'vpn', 'max_connections', 'slow_query_log', 'srv-CanNotDelete-lock'}
    assert all(
        o.status == SubmissionStatus.SUCCEEDED
        for o in report.outcomes
        if o.request.family == ResourceFamily.PRIVATE_DNS_ZONE_GROUPS
    )


@pytest.mark.asyncio
async def test_server_failure_skips_everything_else(provisioner_config, full_plan):
    provisioner = RecordingProvisioner(provisioner_config, failures={
        'servers/srv': [ProviderRejected("quota exceeded", status_code=409)],
    })
    report = await make_executor(provisioner).execute(full_plan)

    assert len(report.failed) == 1
    assert len(report.skipped) == len(full_plan.submission_order()) - 1
    assert provisioner.submitted == []

    summary = report.summary()
    assert summary['succeeded'] == []
    assert summary['failed'][0]['errorType'] == 'ProviderRejected'


@pytest.mark.asyncio
async def test_run_family_refuses_unmet_dependencies(recording_provisioner, full_plan):
    executor = make_executor(recording_provisioner)
    families = {family.family: family for family in full_plan.families()}
    report = SubmissionReport()

    await executor.run_family(families[ResourceFamily.SERVER], report)

    with pytest.raises(DependencyOrderingError):
        await executor.run_family(families[ResourceFamily.CONFIGURATIONS], report)
    assert all(r.family != ResourceFamily.CONFIGURATIONS for r in recording_provisioner.submitted)


@pytest.mark.asyncio
async def test_timeout_is_a_transient_failure(full_server_spec, scope):
    async def slow_submit(request):
        await asyncio.sleep(1)
        return {}

    plan = build_submission_plan(compose_deployment(full_server_spec, scope))
    executor = PlanExecutor(slow_submit, retry_attempts=0, retry_delay=0.0, timeout=0.01)
    report = await executor.execute(plan)

    assert isinstance(report.failed[0].error, TransientFailure)
    assert report.failed[0].request.family == ResourceFamily.SERVER


@pytest.mark.asyncio
async def test_unexpected_submit_error_is_reported(full_server_spec, scope):
    submitted = []

    async def flaky_submit(request):
        if request.family == ResourceFamily.DATABASES:
            raise RuntimeError("unexpected SDK error")
        submitted.append(request)
        return {}

    plan = build_submission_plan(compose_deployment(full_server_spec, scope))
    report = await PlanExecutor(flaky_submit, retry_attempts=3, retry_delay=0.0, timeout=5).execute(plan)

    assert [o.request.name for o in report.failed] == ['db1']
    failure = report.failed[0]
    assert failure.attempts == 1
    assert isinstance(failure.error, ProviderRejected)
    assert isinstance(failure.error.original_error, RuntimeError)
    assert {o.request.name for o in report.skipped} == {'db2', 'srv-CanNotDelete-lock'}
    assert len(report.succeeded) == len(submitted)
    assert len(report.outcomes) == len(plan.submission_order())


@pytest.mark.asyncio
async def test_no_executor_timeout_when_submit_owns_deadline(server_spec, scope):
    async def slow_submit(request):
        await asyncio.sleep(0.05)
        return {'id': request.resource_id}

    plan = build_submission_plan(compose_deployment(server_spec, scope))
    report = await PlanExecutor(slow_submit, retry_delay=0.0, timeout=None).execute(plan)

    assert report.ok
    assert report.succeeded[0].attempts == 1
