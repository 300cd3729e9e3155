import argparse
import json
import logging
import sys

from kafka import KafkaProducer

from configs.settings import config_value, load_config
from producers.events import EntryEvent

DEFAULT_TOPIC = "raywatch.entries"
DLQ_TOPIC = "raywatch.entries.dlq"


class DLQKafkaProducer:
    def __init__(self, bootstrap_servers, topic_name=DLQ_TOPIC, producer=None):
        self.topic_name = topic_name
        self.producer = producer or KafkaProducer(
            bootstrap_servers=[bootstrap_servers],
            value_serializer=lambda v: json.dumps(v).encode("utf-8"),
            linger_ms=100,
        )

    def send(self, event, reason=None):
        if reason:
            event["dlq_reason"] = reason
        try:
            self.producer.send(self.topic_name, value=event)
            self.producer.flush()
            logging.warning(f"Sent failed event to DLQ: {self.topic_name}")
        except Exception as e:
            logging.error(f"Failed to send to DLQ: {e}")


class KafkaEntryTopic:
    def __init__(self, topic_name, bootstrap_servers, producer=None):
        self.topic_name = topic_name
        self.producer = producer or KafkaProducer(
            bootstrap_servers=[bootstrap_servers],
            request_timeout_ms=5000,
        )
        self.delivery_failures = 0

    def _on_send_error(self, event, exc):
        self.delivery_failures += 1
        logging.error(f"Failed to deliver slot {event.slot} idx {event.idx} to Kafka: {exc}")

    def produce(self, event: EntryEvent) -> bool:
        # Delivery is confirmed asynchronously; close() flushes whatever is still in flight.
        try:
            future = self.producer.send(self.topic_name, key=event.key(), value=event.to_json())
        except Exception as e:
            logging.error(f"Failed to send to Kafka: {e}")
            return False
        future.add_errback(self._on_send_error, event)
        logging.info(f"Sent slot {event.slot} idx {event.idx} to Kafka topic: {self.topic_name}")
        return True

    def close(self):
        self.producer.flush()
        self.producer.close()


def read_entry_events(lines):
    """Yield ``(EntryEvent, None)`` per valid JSON line and ``(raw, reason)`` otherwise."""
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            yield EntryEvent.from_dict(data), None
        except KeyError as e:
            yield {"raw": line}, f"line {lineno}: missing field {e}"
        except ValueError as e:
            yield {"raw": line}, f"line {lineno}: {e}"


def publish(lines, topic: KafkaEntryTopic, dlq: DLQKafkaProducer) -> dict:
    stats = {"sent": 0, "failed": 0, "dlq": 0}
    for event, reason in read_entry_events(lines):
        if reason is not None:
            logging.warning(f"Skipping malformed entry event ({reason})")
            dlq.send(event, reason=reason)
            stats["dlq"] += 1
        elif topic.produce(event):
            stats["sent"] += 1
        else:
            stats["failed"] += 1
    return stats


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Publish Raydium entry events to Kafka.")
    parser.add_argument("input", nargs="?", default="-", help="JSON-lines file of entry events ('-' for stdin)")
    parser.add_argument("--config", default=None, help="Path to raywatch.toml")
    parser.add_argument("--topic", default=None)
    parser.add_argument("--bootstrap-servers", default=None)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    args = parse_args(argv)
    config = load_config(args.config)

    servers = args.bootstrap_servers or config_value(
        config, "kafka", "bootstrap_servers", env="KAFKA_BOOTSTRAP_SERVERS", default="localhost:9092"
    )
    topic_name = args.topic or config_value(config, "kafka", "topic", env="RAYWATCH_TOPIC", default=DEFAULT_TOPIC)
    dlq_name = config_value(config, "kafka", "dlq_topic", env="RAYWATCH_DLQ_TOPIC", default=DLQ_TOPIC)

    topic = KafkaEntryTopic(topic_name, servers)
    dlq = DLQKafkaProducer(servers, topic_name=dlq_name)
    try:
        if args.input == "-":
            stats = publish(sys.stdin, topic, dlq)
        else:
            with open(args.input, encoding="utf-8") as f:
                stats = publish(f, topic, dlq)
    finally:
        topic.close()
        dlq.producer.close()

    stats["failed"] += topic.delivery_failures
    logging.info(f"Published {stats['sent']} entry events ({stats['failed']} failed, {stats['dlq']} to DLQ)")
    return 1 if stats["failed"] else 0


if __name__ == "__main__":
    sys.exit(main())
