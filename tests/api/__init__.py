"""API tests package.

End-to-end tests for the transmit endpoints using TestClient.
Tests the complete request/response cycle including:
- Request validation (problem details on 400)
- Channel authorization (401)
- Event stream headers and framing

Note:
    API tests run a real coordinator without replication transport,
    injected through dependency overrides.
"""
