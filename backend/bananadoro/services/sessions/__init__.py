"""Session engine services: registry, membership, broadcast and timers.

This package holds the in-memory timer rooms and everything that mutates
them. Socket handlers and HTTP routes import from here, keeping transport
concerns separated from the timer mechanics.
"""

from .engine import SessionEngine

__all__ = ['SessionEngine']
