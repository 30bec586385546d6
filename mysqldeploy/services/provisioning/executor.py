"""
Plan executor: submits a SubmissionPlan phase by phase.

Families inside a phase run concurrently. Sequential families submit one
request at a time and stop at their first failure. A family only starts
once every family it depends on has fully succeeded; otherwise it is
skipped. Transient failures are retried with exponential backoff,
provider rejections are not.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from mysqldeploy.models.enums import ResourceFamily, SubmissionStatus
from mysqldeploy.utils.async_utils import async_retry, gather_with_limit, timeout_wrapper

from .composer import ResourceRequest
from .errors import (
    DependencyOrderingError,
    PartialSubmissionError,
    ProviderRejected,
    ProvisionerException,
    TransientFailure,
)
from .plan import RequestFamily, SubmissionPlan

logger = logging.getLogger(__name__)

SubmitFunc = Callable[[ResourceRequest], Awaitable[Dict[str, Any]]]


@dataclass
class SubmissionOutcome:
    """Result of submitting (or skipping) one request."""
    request: ResourceRequest
    status: SubmissionStatus
    response: Optional[Dict[str, Any]] = None
    error: Optional[ProvisionerException] = None
    attempts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'family': self.request.family.value,
            'name': self.request.name,
            'id': self.request.resource_id,
            'status': self.status.value,
            'attempts': self.attempts,
        }
        if self.error is not None:
            result['error'] = self.error.message
            result['errorType'] = type(self.error).__name__
        return result


@dataclass
class SubmissionReport:
    """Per-request outcomes of a plan run, in completion order."""
    outcomes: List[SubmissionOutcome] = field(default_factory=list)

    def _with_status(self, status: SubmissionStatus) -> List[SubmissionOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == status]

    @property
    def succeeded(self) -> List[SubmissionOutcome]:
        return self._with_status(SubmissionStatus.SUCCEEDED)

    @property
    def failed(self) -> List[SubmissionOutcome]:
        return self._with_status(SubmissionStatus.FAILED)

    @property
    def skipped(self) -> List[SubmissionOutcome]:
        return self._with_status(SubmissionStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.skipped

    def outcome_for(self, resource_id: str) -> Optional[SubmissionOutcome]:
        for outcome in self.outcomes:
            if outcome.request.resource_id == resource_id:
                return outcome
        return None

    def summary(self) -> Dict[str, Any]:
        return {
            'succeeded': [outcome.request.resource_id for outcome in self.succeeded],
            'failed': [outcome.to_dict() for outcome in self.failed],
            'skipped': [outcome.request.resource_id for outcome in self.skipped],
        }

    def raise_for_failures(self, provider: Optional[str] = None) -> None:
        """
        Raises:
            PartialSubmissionError: If any request failed or was skipped
        """
        if self.ok:
            return
        raise PartialSubmissionError(
            f"{len(self.failed)} request(s) failed and {len(self.skipped)} were skipped; "
            f"{len(self.succeeded)} succeeded",
            report=self,
            provider=provider,
        )


class PlanExecutor:
    """
    Submits the requests of a plan through a submit callable.

    Args:
        submit: Coroutine function PUTting one request to the control plane
        max_concurrency: Maximum concurrent families / requests per phase
        retry_attempts: Retries after the first attempt on TransientFailure
        retry_delay: Initial backoff delay in seconds
        retry_backoff: Backoff multiplier
        timeout: Per-attempt timeout in seconds; None when submit enforces its own deadline
    """

    def __init__(
        self,
        submit: SubmitFunc,
        max_concurrency: int = 5,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        retry_backoff: float = 2.0,
        timeout: Optional[float] = 300
    ):
        self.submit = submit
        self.max_concurrency = max_concurrency
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.retry_backoff = retry_backoff
        self.timeout = timeout
        self._family_status: Dict[ResourceFamily, bool] = {}

    async def execute(self, plan: SubmissionPlan) -> SubmissionReport:
        """
        Submit every phase of the plan in order.

        Args:
            plan: Submission plan

        Returns:
            SubmissionReport with one outcome per request

        Raises:
            DependencyOrderingError: If the plan orders a family before its dependencies
        """
        plan.validate()
        report = SubmissionReport()
        self._family_status = {}
        planned = set(plan.family_names())

        for phase in plan.phases:
            logger.info(
                f"Submitting phase '{phase.name}': "
                f"{', '.join(family.family.value for family in phase.families)}"
            )
            for family in phase.families:
                self._check_dependencies_attempted(family, planned)

            await gather_with_limit(
                [self.run_family(family, report, planned) for family in phase.families],
                limit=self.max_concurrency,
            )

        logger.info(
            f"Plan finished: {len(report.succeeded)} succeeded, "
            f"{len(report.failed)} failed, {len(report.skipped)} skipped"
        )
        return report

    def _check_dependencies_attempted(self, family: RequestFamily, planned: set) -> None:
        for dependency in family.depends_on:
            if dependency in planned and dependency not in self._family_status:
                raise DependencyOrderingError(
                    f"Cannot submit {family.family.value} before {dependency.value} has completed"
                )

    async def run_family(
        self,
        family: RequestFamily,
        report: SubmissionReport,
        planned: Optional[set] = None
    ) -> bool:
        """
        Submit all requests of one family.

        Returns:
            True if every request of the family succeeded

        Raises:
            DependencyOrderingError: If a planned dependency has not completed yet
        """
        planned = planned if planned is not None else set(family.depends_on)
        self._check_dependencies_attempted(family, planned)

        blocked = [
            dependency for dependency in family.depends_on
            if dependency in planned and not self._family_status.get(dependency)
        ]
        if blocked:
            logger.warning(
                f"Skipping {family.family.value}: dependencies did not succeed "
                f"({', '.join(dependency.value for dependency in blocked)})"
            )
            report.outcomes.extend(
                SubmissionOutcome(request=request, status=SubmissionStatus.SKIPPED)
                for request in family.requests
            )
            self._family_status[family.family] = False
            return False

        if family.sequential:
            outcomes = []
            for index, request in enumerate(family.requests):
                outcome = await self._submit_one(request)
                report.outcomes.append(outcome)
                outcomes.append(outcome)
                if outcome.status != SubmissionStatus.SUCCEEDED:
                    remaining = family.requests[index + 1:]
                    report.outcomes.extend(
                        SubmissionOutcome(request=skipped, status=SubmissionStatus.SKIPPED)
                        for skipped in remaining
                    )
                    break
            succeeded = len(outcomes) == len(family.requests) and all(
                outcome.status == SubmissionStatus.SUCCEEDED for outcome in outcomes
            )
        else:
            outcomes = await gather_with_limit(
                [self._submit_one(request) for request in family.requests],
                limit=self.max_concurrency,
            )
            report.outcomes.extend(outcomes)
            succeeded = all(outcome.status == SubmissionStatus.SUCCEEDED for outcome in outcomes)

        self._family_status[family.family] = succeeded
        return succeeded

    async def _submit_one(self, request: ResourceRequest) -> SubmissionOutcome:
        outcome = SubmissionOutcome(request=request, status=SubmissionStatus.FAILED)

        @async_retry(
            max_retries=self.retry_attempts,
            delay=self.retry_delay,
            backoff=self.retry_backoff,
            retry_on=(TransientFailure,),
        )
        async def attempt() -> Dict[str, Any]:
            outcome.attempts += 1
            if self.timeout is None:
                return await self.submit(request)
            try:
                return await timeout_wrapper(self.submit(request), timeout_seconds=self.timeout)
            except asyncio.TimeoutError as e:
                raise TransientFailure(
                    f"Timed out after {self.timeout}s",
                    resource_id=request.resource_id,
                    original_error=e
                )

        logger.info(f"Submitting {request.resource_type} {request.resource_id}")
        try:
            outcome.response = await attempt()
            outcome.status = SubmissionStatus.SUCCEEDED
        except (ProviderRejected, TransientFailure) as e:
            logger.error(f"Request for {request.resource_id} failed: {e.message}")
            outcome.error = e
        except Exception as e:
            # Any other error still yields a failed outcome in the report
            logger.exception(f"Unexpected error submitting {request.resource_id}")
            outcome.error = ProviderRejected(
                f"Unexpected error: {str(e)}",
                provider=e.provider if isinstance(e, ProvisionerException) else None,
                resource_id=request.resource_id,
                original_error=e
            )

        return outcome
