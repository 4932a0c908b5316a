# Integration Module
"""
Audit logging for the message channel.

All events identify outputs by a privacy-preserving hash of their value
commitment.
"""

# Lazy imports to avoid RuntimeWarning when running module directly
def __getattr__(name):
    """Lazy import to avoid circular import issues."""
    from . import event_logger
    return getattr(event_logger, name)

__all__ = [
    'EventType',
    'ProofEvent',
    'EventLogger',
    'get_output_hash',
    'create_event_logger',
]
