"""
Utility helpers.
"""

from ragchat.utils.config import RAGConfig, load_config
from ragchat.utils.logging import get_logger, set_log_level

__all__ = [
    "RAGConfig",
    "load_config",
    "get_logger",
    "set_log_level",
]
