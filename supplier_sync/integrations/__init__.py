"""Remote store integrations."""

from .command_client import CommandClient

__all__ = ["CommandClient"]
