"""
Entrypoint for the background worker: `python -m worker`.

Runs the outbox dispatcher and the task processor side by side on
APScheduler background threads until SIGINT/SIGTERM.
"""
import logging
import signal
import threading

import redis

from api import configure_logging
from api.config import get_config
from models import storage
from utils.email import EmailSender, GmailSender, LocalSender
from worker.distributor import RedisTaskDistributor
from worker.outbox import OutboxDispatcher
from worker.processor import RedisTaskProcessor

logger = logging.getLogger(__name__)


def build_mailer(config) -> EmailSender:
    if config.ENVIRONMENT == "local":
        return LocalSender(config.EMAIL_SENDER_NAME, config.MAILHOG_SENDER_ADDRESS, config.MAILHOG_HOST)
    return GmailSender(config.EMAIL_SENDER_NAME, config.GMAIL_SENDER_ADDRESS, config.GMAIL_SENDER_PASSWORD)


def main() -> None:
    config = get_config(None)
    configure_logging(config.LOG_LEVEL)

    client = redis.Redis.from_url(config.REDIS_URL, decode_responses=True)
    dispatcher = OutboxDispatcher(storage, RedisTaskDistributor(client))
    processor = RedisTaskProcessor(client, storage, build_mailer(config), config.APP_URL)

    stop = threading.Event()

    def _shutdown(signum, frame):
        logger.info("Received signal %s, shutting down", signum)
        stop.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    dispatcher.start(config.OUTBOX_DISPATCH_INTERVAL_SECONDS)
    processor.start(config.TASK_POLL_INTERVAL_SECONDS)
    logger.info("Worker running (environment=%s)", config.ENVIRONMENT)

    stop.wait()
    processor.stop()
    dispatcher.stop()


if __name__ == "__main__":
    main()
