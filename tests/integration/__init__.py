"""
Integration tests package.

These tests require external services (Qdrant, Redis) and are skipped by default.
Run with: pytest tests/integration/ -v --integration
"""
