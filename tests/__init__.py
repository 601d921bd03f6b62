"""Test package for geo-point-clusters.

This package contains:
- Unit tests (test_ingest.py, test_spatial.py, test_pipeline.py, test_config.py)
- Integration tests (test_integration.py)
- Test configuration and payload fixtures (conftest.py)
"""
