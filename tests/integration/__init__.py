"""
API test package for Task Compass.

This package contains tests for the JSON endpoints.
Tests use the Flask test client and demonstrate:
- CRUD operation testing
- Input validation testing
- Backend failure handling
"""
