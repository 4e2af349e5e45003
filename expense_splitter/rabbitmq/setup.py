import logging
import pika
from .config import rabbitmq_config

logger = logging.getLogger(__name__)


class RabbitMQSetup:
    """Creates broker connections and declares the exchanges this service publishes to"""

    def __init__(self, config=rabbitmq_config):
        self.config = config

    def connection_parameters(self) -> pika.ConnectionParameters:
        credentials = pika.PlainCredentials(self.config.username, self.config.password)
        return pika.ConnectionParameters(
            host=self.config.host,
            port=self.config.port,
            virtual_host=self.config.virtual_host,
            credentials=credentials,
            heartbeat=self.config.heartbeat,
            connection_attempts=self.config.connection_attempts,
            retry_delay=self.config.retry_delay
        )

    def create_connection(self) -> pika.BlockingConnection:
        return pika.BlockingConnection(self.connection_parameters())

    def declare_exchanges(self, channel) -> None:
        channel.exchange_declare(
            exchange=self.config.balance_events_exchange,
            exchange_type="topic",
            durable=True
        )
        logger.info(f"Declared exchange {self.config.balance_events_exchange}")


def init_rabbitmq() -> bool:
    """Declare exchanges at startup; does nothing when events are disabled"""
    if not rabbitmq_config.events_enabled:
        logger.info("Balance events disabled, skipping RabbitMQ setup")
        return False

    setup = RabbitMQSetup()
    try:
        connection = setup.create_connection()
        try:
            setup.declare_exchanges(connection.channel())
        finally:
            connection.close()
        return True
    except Exception as e:
        logger.error(f"RabbitMQ setup failed: {e}")
        return False
