"""
Core message types.
"""

from ragchat.core.message import Message, Role, split_system

__all__ = [
    "Message",
    "Role",
    "split_system",
]
