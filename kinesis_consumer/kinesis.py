"""Polling subscription to a Kinesis stream."""
import time
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Final

from typing_extensions import Self

# Most records a single GetRecords call may return.
MAX_RECORDS_PER_REQUEST: Final[int] = 10_000


@dataclass(frozen=True)
class KinesisMessage:
    payload: str
    partition_key: str
    sequence_number: str
    shard_id: str
    arrived_at: datetime | None = None

    @classmethod
    def from_record(cls, shard_id: str, record: dict[str, Any]) -> Self:
        return cls(
            payload=record["Data"].decode("utf-8", errors="replace"),
            partition_key=record["PartitionKey"],
            sequence_number=record["SequenceNumber"],
            shard_id=shard_id,
            arrived_at=record.get("ApproximateArrivalTimestamp"),
        )


class KinesisSubscription(Iterator[list[KinesisMessage]]):
    """
    Reads every shard of a stream, one batch of messages at a time.

    Each batch is returned once it holds `batch_size` messages or once `timelimit`
    has passed, so a quiet stream yields empty batches instead of blocking.
    Closed shards are dropped after their last records have been read.
    """

    def __init__(
        self,
        client: Any,
        stream: str,
        batch_size: int,
        timelimit: timedelta,
        iterator_type: str = "LATEST",
        poll_interval: timedelta = timedelta(seconds=0.2),
    ) -> None:
        self._client = client
        self._stream = stream
        self._batch_size = batch_size
        self._timelimit = timelimit
        self._iterator_type = iterator_type
        self._poll_interval = poll_interval
        self._iterators: dict[str, str] | None = None

    def __next__(self) -> list[KinesisMessage]:
        batch: list[KinesisMessage] = []

        start = time.monotonic()
        while len(batch) < self._batch_size:
            batch.extend(self._fetch_records(self._batch_size - len(batch)))
            if len(batch) >= self._batch_size:
                break
            if time.monotonic() - start >= self._timelimit.total_seconds():
                break
            time.sleep(self._poll_interval.total_seconds())

        return batch

    def _shard_ids(self) -> list[str]:
        shard_ids: list[str] = []
        params: dict[str, Any] = {"StreamName": self._stream}
        while True:
            response = self._client.list_shards(**params)
            shard_ids.extend(shard["ShardId"] for shard in response["Shards"])
            if "NextToken" not in response:
                return shard_ids
            params = {"NextToken": response["NextToken"]}

    def _shard_iterators(self) -> dict[str, str]:
        if self._iterators is None:
            self._iterators = {
                shard_id: self._client.get_shard_iterator(
                    StreamName=self._stream,
                    ShardId=shard_id,
                    ShardIteratorType=self._iterator_type,
                )["ShardIterator"]
                for shard_id in self._shard_ids()
            }
        return self._iterators

    def _fetch_records(self, limit: int) -> list[KinesisMessage]:
        iterators = self._shard_iterators()
        messages: list[KinesisMessage] = []
        for shard_id, shard_iterator in list(iterators.items()):
            if len(messages) >= limit:
                break
            response = self._client.get_records(
                ShardIterator=shard_iterator,
                Limit=min(limit - len(messages), MAX_RECORDS_PER_REQUEST),
            )
            messages.extend(
                KinesisMessage.from_record(shard_id, record)
                for record in response["Records"]
            )
            if (next_iterator := response.get("NextShardIterator")) is None:
                del iterators[shard_id]
            else:
                iterators[shard_id] = next_iterator
        return messages
