"""
Tamper-evident audit trail.

Every event is encrypted with AES-256-GCM and linked to its predecessor
through a SHA-256 hash chain, so retroactive edits to stored records are
detectable without access to the encryption key.
"""

__version__ = "0.1.0"
