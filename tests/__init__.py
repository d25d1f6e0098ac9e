"""
Tests Module
============

Unit tests and integration tests for the trade queue service.

Test Categories:
- unit/: Profit rule, stores, processor, worker, settings
- integration/: HTTP API and producer/worker pipeline

License: MIT
"""
