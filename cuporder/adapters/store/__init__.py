"""Order store and stock source adapters.

Implementations support multiple backends:
- In-memory (zero-config, process lifetime)
- SQLite (single-file, survives restarts)
"""
