"""
Managers package for pdanalytics.
"""

from .base import BaseManager, ManagerError, ManagerState, HealthStatus

__all__ = [
    'BaseManager',
    'ManagerError',
    'ManagerState',
    'HealthStatus',
]
