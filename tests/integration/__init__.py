"""
tests/integration/
~~~~~~~~~~~~~~~~~~
Integration tests that call real external services.

These tests are SKIPPED by default. To run them:

    INTEGRATION_TESTS=1 pytest tests/integration/ -v

Rate Limit Considerations:
- Nominatim: 1 req/sec - rate limited in code
- Aircraft database: point AIRCRAFT_DB_URL at your own receiver
"""
