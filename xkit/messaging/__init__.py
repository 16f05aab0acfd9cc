"""Messages, a transactional outbox, an idempotent inbox and a RabbitMQ client."""