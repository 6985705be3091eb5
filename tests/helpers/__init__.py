"""
Test helpers for DynamoDB Template.

Configuration factory and sample entity classes covering a simple key, a composite key and a GSI.
"""

from .config import make_config
from .sample_entities import ALL_ENTITIES, Installation, Playlist, User

__all__ = [
    'ALL_ENTITIES',
    'Installation',
    'Playlist',
    'User',
    'make_config',
]
