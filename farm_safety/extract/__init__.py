"""
Extract Layer - Pure I/O to External APIs

This layer reads raw farm documents with no scoring logic.
- No imports from transform or load layers
- Returns raw documents
- Handles retries and error reporting
"""
