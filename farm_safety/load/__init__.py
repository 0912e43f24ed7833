"""
Load Layer - Data Persistence

This layer handles all persistence operations.
- Farm document store (score upserts keyed by farm identity)
- Scored farm exports (Parquet, JSON)
- No scoring logic, just I/O operations
"""
