"""
PURPOSE: Persistence backends for Strategy Forge.
"""

from app.storage.kv_store import InMemoryKVStore, KeyValueStore, RedisKVStore, build_store

__all__ = ["KeyValueStore", "InMemoryKVStore", "RedisKVStore", "build_store"]
