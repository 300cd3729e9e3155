import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


class Consumer(ABC):
    """Kafka consumer that buffers rows and writes them in batches.

    Subclasses turn one message into a row in ``process`` and persist the
    buffered rows in ``flush_batch``.
    """

    def __init__(
        self,
        end_point: str,
        topics: Optional[List[str]] = None,
        consumer: Optional[Any] = None,
        consumer_group: Optional[str] = None,
        batch_size: int = 5,
    ):
        self.consumer = consumer
        self.end_point = end_point
        self.topics = topics or []
        self.consumer_group = consumer_group
        self.batch_size = batch_size
        self.batch: List[dict] = []

    def consume(self) -> None:
        logger.info(f"Consuming from topics: {self.topics}")
        try:
            for message in self.consumer:
                try:
                    self.process(message.value, message.topic)
                except Exception as e:
                    logger.exception(f"Failed to process message: {e}")
        finally:
            try:
                if self.batch:
                    self.flush_batch()
            finally:
                self.close()

    def add(self, row: dict) -> None:
        self.batch.append(row)
        if len(self.batch) >= self.batch_size:
            self.flush_batch()

    def close(self) -> None:
        if self.consumer is not None:
            self.consumer.close()

    @abstractmethod
    def process(self, msg: Any, topic_name: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def flush_batch(self) -> None:
        pass
