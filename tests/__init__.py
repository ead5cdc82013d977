"""
Speedometer Test Suite.

This package contains all tests for Speedometer:

- unit/: Schema, decoder, canonicalizer, pipeline, collector and export tests
- integration/: Command-line runs over the sample log files
- fixtures/logs/: One sample log per producer shape (NDT5, NDT7, speedtest-cli)
- conftest.py: Shared fixtures and test configuration

Run tests with: pytest
"""
