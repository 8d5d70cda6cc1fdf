"""Program key persistence providers.

SQLiteKeyStore keeps the catalog in data/keys.db: one row per program key,
merged in place on every sighting and never deleted.
"""
