"""Business logic: client session core, relay and Messenger services."""
