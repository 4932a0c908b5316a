# Core Cryptography Module
"""
Core primitives of the range-proof channel:
- secp256k1 point arithmetic with CT quadratic-residue point encoding
- RFC 6979 HMAC-SHA256 deterministic keystream
- Base-4 digit decomposition of committed values
"""
