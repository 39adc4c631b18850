"""RabbitMQ provider infrastructure."""
