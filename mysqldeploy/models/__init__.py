"""mysqldeploy Models Package"""

from mysqldeploy.models.enums import (
    CreateMode,
    EnabledState,
    LockKind,
    LogAnalyticsDestinationType,
    MinimalTlsVersion,
    ResourceFamily,
    ServerVersion,
    SubmissionStatus,
)

__all__ = [
    "CreateMode",
    "EnabledState",
    "LockKind",
    "LogAnalyticsDestinationType",
    "MinimalTlsVersion",
    "ResourceFamily",
    "ServerVersion",
    "SubmissionStatus",
]
