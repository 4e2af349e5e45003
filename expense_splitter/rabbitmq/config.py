from pydantic_settings import BaseSettings, SettingsConfigDict


class RabbitMQConfig(BaseSettings):
    """Broker settings, read from RABBITMQ_* environment variables"""

    model_config = SettingsConfigDict(env_prefix="RABBITMQ_")

    host: str = "localhost"
    port: int = 5672
    username: str = "guest"
    password: str = "guest"
    virtual_host: str = "/"
    heartbeat: int = 600
    connection_attempts: int = 3
    retry_delay: int = 2

    # Balance change notifications
    events_enabled: bool = False
    balance_events_exchange: str = "expense_splitter.balances"
    balance_updated_key: str = "group.balances.updated"


rabbitmq_config = RabbitMQConfig()
