"""
Core business logic components.

This package contains the record filtering components:
- Record validation
- Identifier store and salted PAN hashing
- Record processor (filter decision)
- Audit logging of filtered and invalid records
- Processing pipeline and metrics
"""
