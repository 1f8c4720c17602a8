"""
Test suite for the Pump Price List API.

Run all tests: pytest
Run with coverage: pytest --cov=. --cov-report=html
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_bulk_upload_service.py -v
"""
