"""
pdanalytics - data sync for a blockchain analytics dashboard.

This package replicates dashboard tables between instances:
- Pull-based, cursor-driven paging over HTTP
- Periodic sweeps over every configured upstream instance
- A retrieval endpoint serving the local tables to peers
"""

__version__ = "0.1.0"
__author__ = "pdanalytics Team"

__all__ = [
    '__version__',
]
