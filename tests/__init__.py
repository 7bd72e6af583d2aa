"""
Test suite for the menu engine.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_menu_import_service.py -v
"""
