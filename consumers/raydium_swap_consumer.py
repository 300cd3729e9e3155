import argparse
import json
import logging
import uuid
from datetime import datetime, timezone

from kafka import KafkaConsumer

from configs.settings import config_value, load_config
from consumers.base import Consumer
from consumers.db.db import ClickHouseError, connection_from_config, get_connection
from consumers.db.init_db import init_db
from consumers.db.schema import RAYDIUM_SWAPS_RAW_COLUMNS, RAYDIUM_SWAPS_RAW_TABLE
from producers.events import EntryEvent

logger = logging.getLogger(__name__)

BATCH_SIZE = 5


def build_row(msg: dict, raw: str, now=None) -> dict:
    """Map a decoded entry event onto a ``raydium_swaps_raw`` row.

    Payloads are checked with ``EntryEvent.from_dict`` so out-of-range or
    non-integer values never reach a batch. ``ts`` is the time the consumer
    received the event as a Unix timestamp, which ClickHouse stores the same
    way whatever the server timezone.
    """
    missing = [key for key in ("slot", "idx") if key not in msg]
    if missing:
        raise ValueError(f"entry event missing {', '.join(missing)}")
    event = EntryEvent.from_dict(msg)

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    return {
        "id": str(uuid.uuid4()),
        "slot": event.slot,
        "idx": event.idx,
        "is_full_entry": 1 if event.is_full_entry else 0,
        "raw": raw,
        "ts": int(now.timestamp()),
    }


class RaydiumSwapConsumer(Consumer):
    def __init__(
        self,
        end_point,
        topics,
        consumer_group="raydium-swap-consumer",
        conn=None,
        consumer=None,
        batch_size=BATCH_SIZE,
    ):
        super().__init__(end_point, topics, consumer=consumer, consumer_group=consumer_group, batch_size=batch_size)

        if self.consumer is None:
            self.consumer = KafkaConsumer(
                *self.topics,
                bootstrap_servers=[self.end_point],
                group_id=self.consumer_group,
                auto_offset_reset="earliest",
                enable_auto_commit=True,
            )

        self.conn = conn or get_connection()

    def process(self, msg, topic_name: str = None) -> None:
        raw = msg.decode("utf-8") if isinstance(msg, (bytes, bytearray)) else str(msg)
        try:
            event = json.loads(raw)
        except ValueError as e:
            logger.warning(f"[Topic: {topic_name}] Dropping undecodable entry event: {e}")
            return
        if not isinstance(event, dict):
            logger.warning(f"[Topic: {topic_name}] Dropping entry event that is not a JSON object")
            return

        try:
            row = build_row(event, raw)
        except (ValueError, TypeError) as e:
            logger.warning(f"[Topic: {topic_name}] Dropping entry event: {e}")
            return

        logger.debug(f"[Topic: {topic_name}] slot={row['slot']} idx={row['idx']} full={row['is_full_entry']}")
        self.add(row)

    def flush_batch(self) -> None:
        try:
            self.conn.insert_rows(RAYDIUM_SWAPS_RAW_TABLE, RAYDIUM_SWAPS_RAW_COLUMNS, self.batch)
            logger.info(f"Inserted batch of {len(self.batch)} rows.")
        except ClickHouseError as e:
            logger.error(f"Batch insert failed, dropping {len(self.batch)} rows: {e}")
        finally:
            self.batch = []

    def close(self) -> None:
        super().close()
        self.conn.close()


def main(argv=None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    parser = argparse.ArgumentParser(description="Land Raydium entry events in ClickHouse.")
    parser.add_argument("--config", default=None, help="Path to raywatch.toml")
    args = parser.parse_args(argv)
    config = load_config(args.config)

    conn = connection_from_config(config)
    init_db(conn)

    consumer = RaydiumSwapConsumer(
        end_point=config_value(
            config, "kafka", "bootstrap_servers", env="KAFKA_BOOTSTRAP_SERVERS", default="localhost:9092"
        ),
        topics=[config_value(config, "kafka", "topic", env="RAYWATCH_TOPIC", default="raywatch.entries")],
        consumer_group=config_value(
            config, "consumer", "group", env="RAYWATCH_CONSUMER_GROUP", default="raydium-swap-consumer"
        ),
        conn=conn,
        batch_size=int(config_value(config, "consumer", "batch_size", env="RAYWATCH_BATCH_SIZE", default=BATCH_SIZE)),
    )
    consumer.consume()


if __name__ == "__main__":
    main()
