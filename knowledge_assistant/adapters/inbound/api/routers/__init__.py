from . import admin, ask, health, search

__all__ = ["admin", "ask", "health", "search"]
