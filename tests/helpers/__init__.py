"""
Test helper utilities for SHIFTLENS testing.

This module provides reusable utilities for:
- Generating synthetic detection events
- An in-memory EventSource with failure injection
"""
