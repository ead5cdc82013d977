"""
Speedometer - broadband speed-test log normalization and export.

This package contains the modules for the Speedometer tool:
- collectors: Log file sources (Google Cloud Storage bucket, local directory)
- collectors.normalization: Schema decoding and canonicalization of test results
- delivery: CSV export of canonical records
- config: Pydantic settings and configuration
- core: Exception hierarchy
- monitoring: Prometheus metrics for batch runs
"""

__version__ = "0.1.0"
