"""Configuration for integration tests.

Integration tests need a running Qdrant and Redis; point QDRANT_URL and
REDIS_URL at them, then run with: pytest --integration
"""

# Options and markers are registered in tests/conftest.py
