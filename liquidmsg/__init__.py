"""
liquidmsg - messages hidden in confidential-transaction range proofs.
"""

__version__ = "0.1.0"
