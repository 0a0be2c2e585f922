import logging
from collections.abc import Callable, Iterator
from typing import TypeAlias

from kinesis_consumer.kinesis import KinesisMessage

logger = logging.getLogger(__name__)

Handler: TypeAlias = Callable[[KinesisMessage], None]


def log_payload(message: KinesisMessage) -> None:
    logger.info("Event Payload: %s", message.payload)


def consume(
    subscription: Iterator[list[KinesisMessage]],
    handler: Handler,
    limit: int | None = None,
) -> int:
    """
    Passes every message of the subscription to `handler`.

    A failing message is logged and skipped, it never stops the consumer. Runs
    until `limit` messages were handled, or forever when `limit` is None.

    Returns:
        The number of messages handled.
    """
    handled = 0
    for batch in subscription:
        for message in batch:
            try:
                handler(message)
            except Exception:
                logger.exception("Kinesis consumer error")
            handled += 1
            if limit is not None and handled >= limit:
                return handled
    return handled
