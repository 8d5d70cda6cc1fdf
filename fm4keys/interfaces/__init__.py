"""Public interface definitions for fm4keys' external collaborators.

The upstream service and the key store are accessed only through the
abstract base classes here.  Concrete adapters live in
``fm4keys/providers/`` and are wired together in ``fm4keys/main.py``.

CONCRETE PROVIDER MAP:
    Interface            →  Concrete implementation
    ──────────────────────────────────────────────────
    IUpstreamProvider    →  FM4APIProvider
    IKeyStore            →  SQLiteKeyStore
"""

from fm4keys.interfaces.key_store import IKeyStore
from fm4keys.interfaces.upstream_provider import IUpstreamProvider

__all__ = ["IKeyStore", "IUpstreamProvider"]
