"""
Service entry point for the Reply Labeler.

Wires Settings into the pipeline components, starts the Prometheus
exporter and consumes Jetstream until SIGINT/SIGTERM.
"""

import asyncio
import signal
from dataclasses import dataclass
from typing import Callable, Optional

import structlog
from prometheus_client import start_http_server
from redis.asyncio import Redis as AsyncRedis

from reply_labeler.atproto.post_fetcher import PostFetcher
from reply_labeler.cache.post_cache import PostCache
from reply_labeler.config import Settings, get_settings
from reply_labeler.decision.classifiers import Classifier, DomainLinkClassifier, OracleClassifier
from reply_labeler.decision.engine import DecisionEngine
from reply_labeler.decision.policy import LabelPolicy
from reply_labeler.dispatch.dispatcher import Dispatcher
from reply_labeler.dispatch.labeler_client import LabelerClient
from reply_labeler.llm.chat_client import ChatCompletionsClient
from reply_labeler.llm.prompt_builder import PromptBuilder
from reply_labeler.logging_config import configure_logging
from reply_labeler.operators import OperatorRegistry
from reply_labeler.persistence.redis_client import RedisClient, get_async_redis_client
from reply_labeler.persistence.repository import (
    AuditRepository,
    DeadLetterRepository,
    EmissionLedger,
)
from reply_labeler.pipeline import ReplyPipeline
from reply_labeler.retry.policy import RetryPolicy
from reply_labeler.stream.consumer import JetstreamConsumer


logger = structlog.get_logger(__name__)


@dataclass
class Application:
    """Everything the running service owns."""

    settings: Settings
    pipeline: ReplyPipeline
    consumer: JetstreamConsumer
    post_fetcher: PostFetcher
    labeler: LabelerClient
    oracle: Optional[ChatCompletionsClient] = None
    redis: Optional[AsyncRedis] = None

    async def close(self):
        await self.post_fetcher.close()
        await self.labeler.close()
        if self.oracle is not None:
            await self.oracle.close()
        if self.redis is not None:
            await RedisClient.close_async_pool()


def build_oracle(settings: Settings) -> ChatCompletionsClient:
    prompt_builder = PromptBuilder(
        model=settings.ORACLE_MODEL,
        fields=settings.ORACLE_FIELDS,
        temperature=settings.ORACLE_TEMPERATURE,
        max_tokens=settings.ORACLE_MAX_TOKENS,
    )
    return ChatCompletionsClient(
        prompt_builder=prompt_builder,
        base_url=settings.ORACLE_BASE_URL,
        endpoint=settings.ORACLE_ENDPOINT,
        timeout=settings.ORACLE_TIMEOUT,
        api_key=settings.ORACLE_API_KEY,
        api_key_type=settings.ORACLE_API_KEY_TYPE,
        retry_policy=RetryPolicy(
            max_attempts=settings.ORACLE_MAX_ATTEMPTS,
            backoff_base=settings.RETRY_BACKOFF_BASE,
        ),
    )


def build_application(settings: Settings, redis: Optional[AsyncRedis] = None) -> Application:
    """
    Build the component graph from settings.

    Args:
        settings: Validated application settings
        redis: Optional Redis client override (defaults to the shared pool)
    """
    if redis is None:
        redis = get_async_redis_client(settings)

    operators = OperatorRegistry.from_settings(settings)
    if not len(operators):
        logger.warning("No watched operators configured, nothing will be labeled")

    post_fetcher = PostFetcher(base_url=settings.APPVIEW_URL, timeout=settings.APPVIEW_TIMEOUT)
    post_cache = PostCache(
        post_fetcher,
        capacity=settings.POST_CACHE_SIZE,
        ttl_seconds=settings.POST_CACHE_TTL_SECONDS,
    )

    oracle: Optional[ChatCompletionsClient] = None
    classifier: Classifier
    if settings.PROFILE == "domain-link":
        classifier = DomainLinkClassifier(settings.FLAGGED_DOMAINS)
    else:
        oracle = build_oracle(settings)
        classifier = OracleClassifier(oracle)

    labeler = LabelerClient(
        base_url=settings.LABELER_URL,
        api_key=settings.LABELER_KEY,
        timeout=settings.LABELER_TIMEOUT,
    )
    ledger = None
    if redis is not None and settings.EMIT_DEDUPE_TTL_SECONDS > 0:
        ledger = EmissionLedger(redis, settings.EMIT_DEDUPE_TTL_SECONDS)
    dispatcher = Dispatcher(
        labeler,
        audit_repository=AuditRepository(redis) if redis is not None else None,
        ledger=ledger,
        dry_run=settings.DRY_RUN,
        retry_policy=RetryPolicy(
            max_attempts=settings.EMIT_MAX_ATTEMPTS,
            backoff_base=settings.RETRY_BACKOFF_BASE,
        ),
    )

    engine = DecisionEngine(LabelPolicy.from_settings(settings), operators, dispatcher)
    pipeline = ReplyPipeline(operators, post_cache, classifier, engine)

    dead_letters = None
    if redis is not None and settings.DLQ_ENABLED:
        dead_letters = DeadLetterRepository(redis, max_entries=settings.DLQ_MAX_ENTRIES)

    consumer = JetstreamConsumer(
        settings.JETSTREAM_URL,
        pipeline.handle_event,
        dead_letters=dead_letters,
        max_reconnect_delay=settings.JETSTREAM_RECONNECT_MAX_DELAY,
    )

    return Application(
        settings=settings,
        pipeline=pipeline,
        consumer=consumer,
        post_fetcher=post_fetcher,
        labeler=labeler,
        oracle=oracle,
        redis=redis,
    )


def make_shutdown_handler(
    consumer: JetstreamConsumer, task: Optional[asyncio.Task]
) -> Callable[[], None]:
    """
    Signal handler: the first signal lets the in-flight event finish, a
    second one cancels the run task.
    """

    def _shutdown():
        if not consumer.stopping:
            logger.info("Shutdown requested, finishing current event", cursor=consumer.cursor)
            consumer.stop()
            return
        logger.warning("Second shutdown signal, cancelling", cursor=consumer.cursor)
        if task is not None:
            task.cancel()

    return _shutdown


async def run(settings: Settings) -> None:
    """Run the service until the consumer stops or the task is cancelled."""
    app = build_application(settings)

    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        profile=settings.PROFILE,
        watched_ops=len(settings.WATCHED_OPS),
        watched_log_ops=len(settings.WATCHED_LOG_OPS),
        persistence=settings.persistence_enabled,
        dry_run=settings.DRY_RUN,
    )

    if app.oracle is not None:
        if await app.oracle.health_check():
            logger.info("Oracle connection successful", model=settings.ORACLE_MODEL)
        else:
            logger.warning("Oracle health check failed", base_url=settings.ORACLE_BASE_URL)

    if settings.PROMETHEUS_ENABLED:
        start_http_server(settings.METRICS_PORT)
        logger.info("Serving metrics", port=settings.METRICS_PORT)

    loop = asyncio.get_running_loop()
    shutdown = make_shutdown_handler(app.consumer, asyncio.current_task())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown)
        except NotImplementedError:
            # Windows event loops
            pass

    try:
        await app.consumer.run()
    except asyncio.CancelledError:
        logger.info("Consumer cancelled", cursor=app.consumer.cursor)
    finally:
        await app.close()
        logger.info("Application shutdown complete")


def main() -> None:
    settings = get_settings()
    configure_logging(
        settings.LOG_LEVEL,
        settings.ENVIRONMENT,
        profile=settings.PROFILE,
        dry_run=settings.DRY_RUN,
    )
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
