"""
Jetstream consumer.

Reads JSON commit events from a Jetstream websocket and hands them to the
pipeline one at a time, in arrival order. A failure while handling one
event is logged (and optionally dead-lettered) and never stops the stream.

Reconnects with capped exponential backoff and resumes from the last seen
`time_us` cursor:

    wss://.../subscribe?wantedCollections=app.bsky.feed.post&cursor=<time_us>
"""

import asyncio
from typing import Any, AsyncIterable, Awaitable, Callable, Iterable, Optional, Union
from urllib.parse import urlencode

import structlog
import websockets
from pydantic import ValidationError
from websockets.exceptions import WebSocketException

from reply_labeler.models.enums import POST_COLLECTION
from reply_labeler.models.events import StreamEvent
from reply_labeler.monitoring.metrics import event_failures_total
from reply_labeler.persistence.repository import DeadLetterRepository


logger = structlog.get_logger(__name__)

EventHandler = Callable[[StreamEvent], Awaitable[Any]]


class JetstreamConsumer:
    """Sequential Jetstream reader with cursor-based reconnect."""

    def __init__(
        self,
        url: str,
        handler: EventHandler,
        wanted_collections: Iterable[str] = (POST_COLLECTION,),
        dead_letters: Optional[DeadLetterRepository] = None,
        max_reconnect_delay: float = 60.0,
        connect=websockets.connect,
        sleep=asyncio.sleep,
    ):
        """
        Args:
            url: Jetstream subscribe endpoint
            handler: Coroutine run for every decoded event
            wanted_collections: Server-side collection filter
            dead_letters: Optional DLQ for events whose handler failed
            max_reconnect_delay: Upper bound for the reconnect backoff (seconds)
            connect: websocket connect factory (tests inject a fake)
            sleep: sleep coroutine (tests inject a fake)
        """
        self.url = url
        self.handler = handler
        self.wanted_collections = tuple(wanted_collections)
        self.dead_letters = dead_letters
        self.max_reconnect_delay = max_reconnect_delay
        self._connect = connect
        self._sleep = sleep
        self.cursor: Optional[int] = None
        self._stopping = False

    def subscribe_url(self) -> str:
        params = [("wantedCollections", collection) for collection in self.wanted_collections]
        if self.cursor:
            params.append(("cursor", str(self.cursor)))
        if not params:
            return self.url
        separator = "&" if "?" in self.url else "?"
        return f"{self.url}{separator}{urlencode(params)}"

    def reconnect_delay(self, attempt: int) -> float:
        return min(2.0 ** attempt, self.max_reconnect_delay)

    @property
    def stopping(self) -> bool:
        return self._stopping

    def stop(self) -> None:
        """Finish the current event, then leave `run()`."""
        self._stopping = True

    async def run(self) -> None:
        """Consume until `stop()` is called."""
        attempt = 0
        while not self._stopping:
            url = self.subscribe_url()
            try:
                async with self._connect(url) as websocket:
                    logger.info("Connected to jetstream", url=url, cursor=self.cursor)
                    attempt = 0
                    await self.run_events(websocket)
                reason = "connection closed"
            except (WebSocketException, OSError) as e:
                reason = str(e) or type(e).__name__

            if self._stopping:
                break

            delay = self.reconnect_delay(attempt)
            attempt += 1
            logger.warning(
                "Jetstream connection lost, reconnecting",
                reason=reason,
                delay=delay,
                cursor=self.cursor,
            )
            await self._sleep(delay)

        logger.info("Jetstream consumer stopped", cursor=self.cursor)

    async def run_events(self, messages: AsyncIterable[Union[str, bytes]]) -> int:
        """
        Process every message from `messages` in order.

        Returns:
            Number of messages read
        """
        count = 0
        async for raw in messages:
            count += 1
            await self.process_message(raw)
            if self._stopping:
                break
        return count

    async def process_message(self, raw: Union[str, bytes]) -> Any:
        """
        Decode and handle a single message.

        Returns:
            The handler's result, or None when the message was dropped
        """
        try:
            event = StreamEvent.model_validate_json(raw)
        except ValidationError as e:
            event_failures_total.labels(error_type="InvalidEvent").inc()
            logger.warning("Failed to decode jetstream message", errors=e.error_count())
            return None

        if event.time_us:
            self.cursor = event.time_us

        try:
            return await self.handler(event)
        except Exception as e:
            error_type = type(e).__name__
            event_failures_total.labels(error_type=error_type).inc()
            logger.error(
                "Failed to handle event",
                uri=event.uri,
                error_type=error_type,
                error=str(e),
                details=getattr(e, "details", None),
            )
            if self.dead_letters is not None:
                await self.dead_letters.save(event, e)
            return None
