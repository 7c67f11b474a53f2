"""
Task processor: picks due tasks from Redis and runs their handler.

A handler that raises SkipRetry drops the task at once. Any other exception
schedules a retry with a growing delay until the message's max_retry is used
up, after which the task is discarded.

A claimed message is moved onto this worker's processing list and only
removed from it once it was handled, dropped or rescheduled. Whatever a
crashed run left there is put back on its queue by recover_processing().
"""
from __future__ import annotations

import json
import logging
import socket
import time
from typing import Callable, Dict

import redis
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from models.base_model import utc_now
from models.verify_email import VerifyEmail, EMAIL_VERIFICATION_EXPIRATION
from utils.email import EmailSender
from utils.security import random_string
from worker.distributor import SCHEDULED_KEY, queue_key
from worker.tasks import (
    QUEUE_WEIGHTS,
    TASK_SEND_ACCOUNT_DELETED_EMAIL,
    TASK_SEND_VERIFY_EMAIL,
    SendEmailPayload,
    SkipRetry,
)

logger = logging.getLogger(__name__)

MAX_RETRY_DELAY_SECONDS = 3600


def processing_key(worker_id: str) -> str:
    return f"budget:tasks:processing:{worker_id}"


def retry_delay(retried: int) -> int:
    """Seconds to wait before attempt number `retried` + 1."""
    return min(10 * 2 ** max(retried - 1, 0), MAX_RETRY_DELAY_SECONDS)


class RedisTaskProcessor:
    def __init__(self, client: redis.Redis, storage, mailer: EmailSender, app_url: str,
                 worker_id: str | None = None):
        self.client = client
        self.storage = storage
        self.mailer = mailer
        self.app_url = app_url.rstrip("/")
        # Stable across restarts so a new run finds what the last one claimed
        self.worker_id = worker_id or socket.gethostname()
        self.processing_key = processing_key(self.worker_id)
        self.handlers: Dict[str, Callable[[SendEmailPayload], None]] = {
            TASK_SEND_VERIFY_EMAIL: self.process_send_verify_email,
            TASK_SEND_ACCOUNT_DELETED_EMAIL: self.process_send_account_deleted_email,
        }
        self.scheduler = None

    def start(self, interval_seconds: float = 1.0) -> None:
        recovered = self.recover_processing()
        if recovered:
            logger.warning("Requeued %s task(s) left unfinished by a previous run", recovered)
        self.scheduler = BackgroundScheduler()
        self.scheduler.add_job(
            self.poll,
            IntervalTrigger(seconds=interval_seconds),
            id="task_processor",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("Task processor started, polling every %ss", interval_seconds)

    def stop(self) -> None:
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Task processor stopped")

    def promote_due(self, now: float | None = None) -> int:
        """Move messages whose due time has passed onto their queue list."""
        now = time.time() if now is None else now
        moved = 0
        for raw in self.client.zrangebyscore(SCHEDULED_KEY, 0, now):
            # zrem is the claim; another processor may have taken it already
            if self.client.zrem(SCHEDULED_KEY, raw):
                queue = json.loads(raw).get("queue", "default")
                self.client.lpush(queue_key(queue), raw)
                moved += 1
        return moved

    def recover_processing(self) -> int:
        """Put messages claimed by an earlier run of this worker back on their queue."""
        recovered = 0
        for raw in self.client.lrange(self.processing_key, 0, -1):
            try:
                queue = json.loads(raw).get("queue", "default")
            except (TypeError, ValueError, AttributeError):
                queue = "default"
            # the right end is popped next
            self.client.rpush(queue_key(queue), raw)
            self.client.lrem(self.processing_key, 1, raw)
            recovered += 1
        return recovered

    def poll(self) -> int:
        try:
            self.promote_due()
        except redis.RedisError:
            logger.exception("Promoting due tasks failed")

        handled = 0
        for queue, weight in sorted(QUEUE_WEIGHTS.items(), key=lambda kv: -kv[1]):
            for _ in range(weight):
                try:
                    raw = self.client.lmove(queue_key(queue), self.processing_key, "RIGHT", "LEFT")
                except redis.RedisError:
                    logger.exception("Claiming a task from queue %s failed", queue)
                    break
                if raw is None:
                    break
                if self.handle(raw):
                    self.ack(raw)
                handled += 1
        return handled

    def ack(self, raw: str) -> None:
        try:
            self.client.lrem(self.processing_key, 1, raw)
        except redis.RedisError:
            # left in the processing list, requeued on the next start
            logger.exception("Acknowledging a task failed")

    def handle(self, raw: str) -> bool:
        """Run one message. False means it must stay claimed and be retried later."""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.error("[dropped_task] unreadable message: %r", raw)
            return True

        handler = self.handlers.get(message.get("type"))
        if handler is None:
            logger.error("[dropped_task] no handler for type=%s", message.get("type"))
            return True

        try:
            handler(SendEmailPayload.from_dict(message.get("payload")))
        except SkipRetry as exc:
            logger.warning("[skipped_task] type=%s id=%s: %s", message["type"], message.get("id"), exc)
        except Exception:
            logger.exception("[failed_task] type=%s id=%s", message["type"], message.get("id"))
            return self.retry(message)
        else:
            logger.info("[processed_task] type=%s id=%s", message["type"], message.get("id"))
        finally:
            self.storage.close()
        return True

    def retry(self, message: dict) -> bool:
        """Reschedule a failed message. False if Redis refused the reschedule."""
        retried = int(message.get("retried", 0)) + 1
        if retried > int(message.get("max_retry", 0)):
            logger.error("[archived_task] type=%s id=%s after %s retries",
                         message["type"], message.get("id"), retried - 1)
            return True
        message["retried"] = retried
        try:
            self.client.zadd(SCHEDULED_KEY, {json.dumps(message): time.time() + retry_delay(retried)})
        except redis.RedisError:
            logger.exception("[retry_failed] type=%s id=%s stays claimed", message["type"], message.get("id"))
            return False
        return True

    def process_send_verify_email(self, payload: SendEmailPayload) -> None:
        user = self.storage.get_user_by_username(payload.username)
        if user is None:
            raise SkipRetry(f"user {payload.username} does not exist")

        with self.storage.transaction() as session:
            record = VerifyEmail(
                username=user.username,
                email=user.email,
                code=random_string(32),
                expires_at=utc_now() + EMAIL_VERIFICATION_EXPIRATION,
            )
            session.add(record)

        link = f"{self.app_url}/api/v1/verify_email?id={record.id}&code={record.code}"
        content = f"""
        <p>Hello {user.username},</p>
        <br/>
        <p>Thanks for creating an account. Kindly verify your email by clicking <a href="{link}">here.</a></p>
        <br/>
        Thanks!
        """
        self.mailer.send_email("Welcome to Budget API", content, [user.email])
        logger.info("[processed_task] verification email=%s", user.email)

    def process_send_account_deleted_email(self, payload: SendEmailPayload) -> None:
        if not payload.email:
            raise SkipRetry("account deleted task without email")
        content = f"""
        <p>Hello {payload.username},</p>
        <br/>
        <p>Your account has been deleted from our website. In case you wish to come back in the future,
        remember that we will be here for you!</p>
        <br/>
        Thanks!
        """
        self.mailer.send_email("We're sorry to see you go", content, [payload.email])
        logger.info("[processed_task] account deleted email=%s", payload.email)
