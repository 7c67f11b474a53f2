"""
Task distributor: puts tasks on the Redis queue read by worker.processor.

A message is a JSON document stored in a sorted set scored by the time it
becomes due. The processor moves due messages to the list of their queue.
"""
from __future__ import annotations

import json
import logging
import time
import uuid
from abc import ABC, abstractmethod

import redis

from worker.tasks import (
    EMAIL_MAX_RETRY,
    EMAIL_PROCESS_IN,
    QUEUE_CRITICAL,
    SendEmailPayload,
)

logger = logging.getLogger(__name__)

SCHEDULED_KEY = "budget:tasks:scheduled"


def queue_key(queue: str) -> str:
    return f"budget:tasks:queue:{queue}"


class TaskEnqueueError(Exception):
    pass


class TaskDistributor(ABC):
    @abstractmethod
    def distribute_send_email(self, payload: SendEmailPayload, task_name: str) -> None:
        """Durably enqueue an email task. Raises TaskEnqueueError on failure."""


def build_message(task_name: str, payload: dict, queue: str, max_retry: int) -> dict:
    return {
        "id": str(uuid.uuid4()),
        "type": task_name,
        "payload": payload,
        "queue": queue,
        "max_retry": max_retry,
        "retried": 0,
    }


class RedisTaskDistributor(TaskDistributor):
    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisTaskDistributor":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def distribute_send_email(self, payload: SendEmailPayload, task_name: str) -> None:
        message = build_message(task_name, payload.to_dict(), QUEUE_CRITICAL, EMAIL_MAX_RETRY)
        due = time.time() + EMAIL_PROCESS_IN.total_seconds()
        try:
            self.client.zadd(SCHEDULED_KEY, {json.dumps(message): due})
        except redis.RedisError as exc:
            raise TaskEnqueueError(f"cannot enqueue task: {exc}") from exc
        logger.info("[enqueued_task] type=%s id=%s queue=%s", task_name, message["id"], QUEUE_CRITICAL)
