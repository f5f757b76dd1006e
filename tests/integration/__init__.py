"""
Integration tests for embedstore.

These tests verify that all components work together correctly,
including persistence across restarts and concurrent access.
"""
