"""
PowerStore Test - Integration tests for the PowerStore client.

This package provides:
- Volume, snapshot and clone lifecycle tests
- An in-memory simulated array for runs without a live array
"""

__version__ = "0.1.0"
