"""Notification Workflow Nodes"""
from .enrich_node import enrich_node
from .format_node import format_message_node
from .send_node import send_node
from .log_node import log_results_node

__all__ = [
    "enrich_node",
    "format_message_node",
    "send_node",
    "log_results_node",
]
