"""Application configuration schema."""

from typing import Optional

from pydantic import BaseModel, Field

from rmq_manage.config.platform_dirs import get_logs_location


class BrokerConfig(BaseModel):
    """RabbitMQ management API connection settings."""

    api_url: str = Field("http://localhost:15672/api", description="Management API base URL")
    host: str = Field("localhost", description="Broker host name")
    request_timeout: Optional[float] = Field(
        None, description="Per-request timeout in seconds; None uses the transport default"
    )
    username: Optional[str] = Field(None, description="Management API username")
    password: Optional[str] = Field(None, description="Management API password")
    credential_exchange: str = Field(
        ".manage.credentials", description="Exchange whose bindings hold system credentials"
    )
    reserved_exchange_prefixes: list[str] = Field(
        default_factory=lambda: ["amq."],
        description="Exchange name prefixes the broker refuses to delete",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level")
    destination: str = Field("stdout", description="Log destination: file, stdout or both")
    log_dir: str = Field(
        default_factory=lambda: str(get_logs_location()),
        description="Directory for log files; defaults beside the config directory",
    )
    log_filename: str = Field("rmq_manage.log", description="Log file name")
    format: str = Field("console", description="Log line format: console or json")


class TemplatesConfig(BaseModel):
    """Template loading configuration."""

    extra_dir: Optional[str] = Field(None, description="Directory with additional YAML templates")


class AppConfig(BaseModel):
    """Root application configuration."""

    broker: BrokerConfig = Field(default_factory=BrokerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    templates: TemplatesConfig = Field(default_factory=TemplatesConfig)
