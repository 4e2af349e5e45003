import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import pika
from .config import rabbitmq_config
from .setup import RabbitMQSetup

logger = logging.getLogger(__name__)


class RabbitMQProducer:
    """Publishes balance change notifications to RabbitMQ"""

    def __init__(self, config=rabbitmq_config):
        self.config = config
        self.connection: Optional[pika.BlockingConnection] = None
        self.channel = None
        self.setup = RabbitMQSetup(config)

    def connect(self) -> None:
        """Establish connection to RabbitMQ"""
        try:
            self.connection = self.setup.create_connection()
            self.channel = self.connection.channel()
            self.setup.declare_exchanges(self.channel)
            logger.info("RabbitMQ producer connected successfully")
        except Exception as e:
            logger.error(f"Failed to connect RabbitMQ producer: {e}")
            raise

    def disconnect(self) -> None:
        """Close RabbitMQ connection"""
        if self.channel and not self.channel.is_closed:
            self.channel.close()
        if self.connection and not self.connection.is_closed:
            self.connection.close()
        logger.info("RabbitMQ producer disconnected")

    def publish_balances_updated(self, group_slug: str, snapshot: Dict[str, Any]) -> bool:
        """
        Publish the recomputed balances and settlement plan of a group

        Args:
            group_slug: Group whose records changed
            snapshot: JSON-serializable balances and transactions

        Returns:
            bool: True if message published successfully, False otherwise
        """
        if not self.connection or self.connection.is_closed:
            self.connect()

        try:
            message_data = {
                "group_slug": group_slug,
                "balances": snapshot.get("balances", []),
                "transactions": snapshot.get("transactions", []),
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

            self.channel.basic_publish(
                exchange=self.config.balance_events_exchange,
                routing_key=self.config.balance_updated_key,
                body=json.dumps(message_data, default=str),
                properties=pika.BasicProperties(
                    delivery_mode=2,  # Make message persistent
                    content_type='application/json'
                )
            )

            logger.info(f"Published balance update for group {group_slug}")
            return True

        except Exception as e:
            logger.error(f"Failed to publish balance update for group {group_slug}: {e}")
            return False


# Global producer instance
_rabbitmq_producer: Optional[RabbitMQProducer] = None


def get_rabbitmq_producer() -> RabbitMQProducer:
    """Get or create RabbitMQ producer instance"""
    global _rabbitmq_producer
    if _rabbitmq_producer is None:
        _rabbitmq_producer = RabbitMQProducer()
        _rabbitmq_producer.connect()
    return _rabbitmq_producer


def close_rabbitmq_producer() -> None:
    """Close RabbitMQ producer connection"""
    global _rabbitmq_producer
    if _rabbitmq_producer:
        _rabbitmq_producer.disconnect()
        _rabbitmq_producer = None


def notify_balances_updated(group_slug: str, snapshot: Dict[str, Any]) -> bool:
    """Publish a balance update if events are enabled; never raises"""
    if not rabbitmq_config.events_enabled:
        return False

    try:
        return get_rabbitmq_producer().publish_balances_updated(group_slug, snapshot)
    except Exception as e:
        logger.error(f"Balance update for group {group_slug} not published: {e}")
        return False
