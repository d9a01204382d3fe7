"""External adapters for the cup order admin system.

This package contains all external dependencies (SQLite, the command
line, etc.) and provides implementations of the core port interfaces.

Adapter Organization:

- store/: Adapters for order persistence and cup stock (in-memory, SQLite)
- cli/: Command-line interface for admin commands
"""
