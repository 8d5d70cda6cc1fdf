"""Command-line tools for fm4keys.

- ``python -m fm4keys.cli.manage init-db`` — create the database schema.
- ``python -m fm4keys.cli.manage scrape`` — run one collection pass.
- ``python -m fm4keys.cli.manage stats`` / ``list`` — inspect the catalog.

Uses argparse; each command builds its own store and client rather than
sharing the server's components, because it runs as a one-shot script.
"""
