"""
Celery app for the "celery" queue backend.

With FLOW_QUEUE_BACKEND=celery the API only enqueues executions; worker
processes started with

    celery -A nexus_flows.workers.celery_app worker -Q flows

pick them up from Redis and run them. A flow may already have changed
stock or sent messages when a worker dies, so executions are acked on
receipt and never redelivered or retried.
"""

import logging
import os

from celery import Celery
from kombu import Exchange, Queue

from ..core.logging_config import setup_logging

FLOW_QUEUE = "flows"
FLOW_ROUTING_KEY = "flow.execute"

# Workers log JSON unless told otherwise
setup_logging(
    level=os.getenv("LOG_LEVEL", "INFO"),
    json_logs=os.getenv("JSON_LOGS", "true").lower() == "true",
    log_file=os.getenv("LOG_FILE"),
)

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL")
if not REDIS_URL:
    raise ValueError("REDIS_URL is not set; the celery queue backend needs a Redis broker.")

_time_limit = int(os.getenv("FLOW_TASK_TIME_LIMIT", "600"))

celery_app = Celery("nexus_flows", broker=REDIS_URL, backend=REDIS_URL)

celery_app.conf.update(
    broker_connection_retry_on_startup=True,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    result_expires=24 * 3600,

    # Execution
    task_track_started=True,
    task_acks_late=False,
    worker_prefetch_multiplier=1,
    task_time_limit=_time_limit,
    task_soft_time_limit=_time_limit - 60,

    # Routing
    task_default_queue=FLOW_QUEUE,
    task_queues=(Queue(FLOW_QUEUE, Exchange(FLOW_QUEUE), routing_key=FLOW_ROUTING_KEY),),
    task_routes={"execute_flow_task": {"queue": FLOW_QUEUE, "routing_key": FLOW_ROUTING_KEY}},

    worker_send_task_events=True,
    task_send_sent_event=True,
)

broker_host = REDIS_URL.rsplit("@", 1)[-1]
logger.info(f"Celery configured (broker {broker_host}, queue {FLOW_QUEUE})")

# Registers execute_flow_task on celery_app
from . import tasks  # noqa: F401, E402
