"""
Response Cache
==============

TTL cache for GET responses, keyed by resource, path and sorted query
parameters. Mutations drop every entry of the resource they touched
and of the resources whose responses embed it.
"""

import time


class ResponseCache:

    def __init__(self, ttl=300, clock=time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries = {}

    @staticmethod
    def make_key(resource, path, params=None):
        items = tuple(sorted((str(k), str(v)) for k, v in (params or {}).items() if v is not None))
        return (resource, path, items)

    def get(self, key):
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key, value):
        self._entries[key] = (self.clock() + self.ttl, value)

    def invalidate(self, *resources):
        """Drop all cached responses belonging to any of the resources"""
        for key in [key for key in self._entries if key[0] in resources]:
            del self._entries[key]

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)
