"""
auditchain CLI - Tamper-evident encrypted audit trail

Commands:
- auditchain register/queue - Record events (directly or through the queue)
- auditchain verify - Verify the hash chain
- auditchain rotate - Rotate the encryption key
- auditchain list/view - Browse records
"""

__version__ = "0.1.0"
