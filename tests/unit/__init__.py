"""Unit tests for models, the query engine, the store and the backend client."""
