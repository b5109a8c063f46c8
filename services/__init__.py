from __future__ import annotations

# Re-export key service classes for convenient imports
from .session import SessionContext, SessionState
from .stats import DashboardStats

__all__ = ["DashboardStats", "SessionContext", "SessionState"]
