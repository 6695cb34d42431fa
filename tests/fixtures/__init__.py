"""Test fixtures for the household calendar.

This package provides reusable test fixtures:
- calendar: In-memory database, services and event factories
- api: FastAPI TestClient wired to the in-memory database
"""
