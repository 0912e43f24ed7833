"""
Transformation Layer - Pure, Deterministic Functions

This layer contains all scoring logic.
- Pure functions (input → output)
- No I/O operations
- Unit testable
- Deterministic results
"""
