"""
Squad Leader Whitelist Test Suite
=================================

Test Organization
-----------------
- tests/unit/          : Fast tests with mocks or a throwaway SQLite file
- tests/integration/   : Integration tests with testcontainers (real PostgreSQL)
- tests/factories.py   : Roster descriptor factories and host fakes
"""
