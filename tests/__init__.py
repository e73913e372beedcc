"""
Test suite for the Task Compass application.

This package contains:
- unit/: Pure logic tests (query engine, models, store, backend client)
- integration/: JSON endpoint tests through the Flask test client
- fakes.py: In-memory backend used by both
"""
