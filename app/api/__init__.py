"""
API routers
"""

from app.api import advisors, landing, lookup

__all__ = ["advisors", "landing", "lookup"]
