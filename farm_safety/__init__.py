"""
Farm Safety Scoring

Turns per-farm yield metrics (TVL, base APR, reward APR, reward payouts)
into a single comparable safety score per farm.
"""

__version__ = "0.1.0"
