"""
Downstream forwarding module.

Sends gate-approved chat and workflow calls to their downstream targets.
"""

from .config import ForwardingConfig, get_forwarding_config, reset_forwarding_config
from .forwarder import DownstreamForwarder, get_forwarder, close_forwarder

__all__ = [
    "ForwardingConfig",
    "get_forwarding_config",
    "reset_forwarding_config",
    "DownstreamForwarder",
    "get_forwarder",
    "close_forwarder",
]
