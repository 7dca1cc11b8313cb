from . import automations, clients, health, users, webhooks

__all__ = [
    "automations",
    "clients",
    "health",
    "users",
    "webhooks",
]
