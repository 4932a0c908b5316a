# liquidmsg Test Suite
"""
Test suite including:
- Unit tests for the curve, keystream and proof codec
- Channel and audit log integration tests
- Security tests (wrong keys, tampering, invalid inputs)

Run with: pytest
"""
