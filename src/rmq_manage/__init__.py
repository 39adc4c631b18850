"""rmq-manage - Template-driven lifecycle manager for RabbitMQ resource systems.

This package provisions and tears down logical groupings of broker resources
(queues, exchanges, bindings) through the RabbitMQ management REST API.

Key Features:
- Declarative YAML templates with typed parameter substitution
- Idempotent provisioning with per-resource reuse/validate policy
- Ownership tagging embedded in resource arguments
- Discovery of managed systems from tagged queues
- Fixed-point teardown that respects shared and protected exchanges

Key Components:
    - domain: Resource models, system identity and membership rules
    - application: Template engine, provisioning and teardown services
    - infrastructure: Logging and template loading
    - providers: RabbitMQ management API gateway
    - cli: Command-line interface

Usage:
    >>> rmq-manage templates list
    >>> rmq-manage systems create retry-system --set vhost=/ --set queue_prefix=orders
    >>> rmq-manage systems delete "retry-system@/:orders" --vhost /
"""

__version__ = "0.1.0"
