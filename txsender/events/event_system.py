import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from loguru import logger

from txsender.solana.models import TxState


class Event:
    """Base event class for the event system."""

    def __init__(self, event_type: str, data: Dict[str, Any]):
        """
        Initialize a new event.

        Args:
            event_type: Type of event
            data: Event data
        """
        self.event_type = event_type
        self.data = data
        self.timestamp = time.time()

    def __str__(self) -> str:
        """String representation of the event."""
        return f"Event(type={self.event_type}, data={self.data})"


class TransactionStateEvent(Event):
    """Event emitted when a submission moves to a new lifecycle state."""

    def __init__(
        self,
        state: TxState,
        signature: Optional[str] = None,
        bundle_id: Optional[str] = None,
        error: Optional[str] = None,
    ):
        """
        Initialize a transaction state event.

        Args:
            state: New lifecycle state
            signature: Transaction signature, when known
            bundle_id: Jito bundle id, when sent as a bundle
            error: Error message for failed or timed out submissions
        """
        super().__init__(f"transaction_{state.value}", {
            "signature": signature,
            "bundle_id": bundle_id,
            "error": error,
            "status": state.value,
        })
        self.state = state


class TransactionBuiltEvent(TransactionStateEvent):
    """Event emitted when a transaction is compiled and signed."""

    def __init__(self, signature: str):
        super().__init__(TxState.BUILT, signature=signature)


class TransactionSentEvent(TransactionStateEvent):
    """Event emitted when the network or block engine accepts a transaction."""

    def __init__(self, signature: Optional[str] = None, bundle_id: Optional[str] = None):
        super().__init__(TxState.SENT, signature=signature, bundle_id=bundle_id)


class TransactionConfirmedEvent(TransactionStateEvent):
    """Event emitted when a transaction is confirmed."""

    def __init__(self, signature: str, bundle_id: Optional[str] = None):
        super().__init__(TxState.CONFIRMED, signature=signature, bundle_id=bundle_id)


class TransactionFailedEvent(TransactionStateEvent):
    """Event emitted when a transaction fails."""

    def __init__(self, error: str, signature: Optional[str] = None, bundle_id: Optional[str] = None):
        super().__init__(TxState.FAILED, signature=signature, bundle_id=bundle_id, error=error)


class TransactionTimedOutEvent(TransactionStateEvent):
    """Event emitted when confirmation times out; the outcome is unknown."""

    def __init__(self, error: str, signature: Optional[str] = None, bundle_id: Optional[str] = None):
        super().__init__(TxState.TIMED_OUT, signature=signature, bundle_id=bundle_id, error=error)


class EventSystem:
    """
    System for subscribing to and publishing events.

    This class provides methods to subscribe to events and publish events
    to subscribers asynchronously.
    """

    def __init__(self):
        """Initialize the event system."""
        self._subscribers: Dict[str, List[Callable[[Event], Awaitable[None]]]] = {}
        self._queue: asyncio.Queue = asyncio.Queue()
        self._running = False
        self._background_task = None

    async def subscribe(self, event_type: str, callback: Callable[[Event], Awaitable[None]]):
        """
        Subscribe to an event type.

        Args:
            event_type: Type of event to subscribe to
            callback: Async callback function to call when event occurs
        """
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []

        self._subscribers[event_type].append(callback)
        logger.debug(f"Subscribed to {event_type} events")

    async def publish(self, event: Event):
        """
        Publish an event to subscribers.

        Args:
            event: Event to publish
        """
        await self._queue.put(event)
        logger.debug(f"Published {event.event_type} event")

    async def _process_events(self):
        """Process events from the queue and dispatch to subscribers."""
        while self._running:
            try:
                event = await self._queue.get()
                logger.debug(f"Processing {event.event_type} event")

                subscribers = self._subscribers.get(event.event_type, [])
                if subscribers:
                    await asyncio.gather(*(sub(event) for sub in subscribers))

                self._queue.task_done()

            except asyncio.CancelledError:
                logger.debug("Event processing task cancelled")
                break

            except Exception as e:
                logger.error(f"Error processing event: {str(e)}")
                self._queue.task_done()

    async def join(self):
        """Wait until every published event has been dispatched."""
        await self._queue.join()

    async def start(self):
        """Start the event processing task."""
        if self._running:
            return

        self._running = True
        self._background_task = asyncio.create_task(self._process_events())
        logger.info("Event system started")

    async def stop(self):
        """Stop the event processing task."""
        if not self._running:
            return

        self._running = False
        if self._background_task:
            self._background_task.cancel()
            try:
                await self._background_task
            except asyncio.CancelledError:
                pass

        logger.info("Event system stopped")
