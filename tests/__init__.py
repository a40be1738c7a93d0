"""Test suite for transmit.

Test structure:
- unit/: Unit tests - each module in isolation with mocked collaborators
- api/: API endpoint tests - HTTP endpoints through FastAPI TestClient
"""
