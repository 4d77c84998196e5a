"""
Test suite for the audit chain.

Focus areas:
- Canonical serialization and payload validation
- Authenticated encryption and key rotation
- Hash chain construction and tamper detection
- Alert, queue and CLI collaborators
"""
