"""
Test suite for the medical inventory import service.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_bulk_import_service.py -v
"""
