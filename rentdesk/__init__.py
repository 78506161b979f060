"""Rentdesk: agent identity administration for the rent-collection dashboard.

Renames agents across every record that carries a copy of their name and
phone, keeps an append-only edit history, and reverses batches within the
undo window.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
