"""
Integration tests for patrol.

These tests spawn real worker processes.
"""
