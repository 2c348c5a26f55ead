"""
Functional tests for pdanalytics.

These tests run real aiohttp servers and SQLite stores on temporary
directories: the sync client against a scripted peer, the HTTP sync API,
and replication between two instances.

Usage:
    pytest tests/functional/
"""
