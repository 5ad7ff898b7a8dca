"""
Local persistence for configuration and generated stories.
"""

from .kv import InMemoryKeyValueStore, KeyValueStore, YamlFileKeyValueStore
from .stores import CONFIG_KEY, STORIES_KEY, ConfigurationStore, StoryStore

__all__ = [
    "CONFIG_KEY",
    "STORIES_KEY",
    "ConfigurationStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "StoryStore",
    "YamlFileKeyValueStore",
]
