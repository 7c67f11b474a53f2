"""Task names, queue names and the email task payload."""
from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import timedelta

TASK_SEND_VERIFY_EMAIL = "task:send_verify_email"
TASK_SEND_ACCOUNT_DELETED_EMAIL = "task:send_account_deleted_email"

QUEUE_DEFAULT = "default"
QUEUE_CRITICAL = "critical"
# Messages taken from each queue per polling round
QUEUE_WEIGHTS = {QUEUE_CRITICAL: 10, QUEUE_DEFAULT: 5}

# Enqueue options for email tasks
EMAIL_MAX_RETRY = 10
EMAIL_PROCESS_IN = timedelta(seconds=10)


class SkipRetry(Exception):
    """Raised by a task handler when retrying cannot help (bad payload, missing user)."""


@dataclass(frozen=True)
class SendEmailPayload:
    username: str
    email: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data) -> "SendEmailPayload":
        if not isinstance(data, dict) or not isinstance(data.get("username"), str):
            raise SkipRetry("cannot unmarshal task payload")
        email = data.get("email") or ""
        if not isinstance(email, str):
            raise SkipRetry("cannot unmarshal task payload")
        return cls(username=data["username"], email=email)
