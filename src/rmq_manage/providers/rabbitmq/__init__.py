"""RabbitMQ management API provider."""
