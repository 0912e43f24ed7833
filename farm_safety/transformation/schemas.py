"""
Transformation Layer Schemas

Polars schemas for the per-farm metrics frame and the scored output frame.
"""

import polars as pl

IDENTITY_COLUMNS = ["id", "chef", "chain", "protocol", "asset_address"]

FARM_METRICS_SCHEMA = pl.Schema(
    [
        ("id", pl.Int64()),
        ("chef", pl.String()),
        ("chain", pl.String()),
        ("protocol", pl.String()),
        ("asset_address", pl.String()),
        ("asset_symbol", pl.String()),
        ("farm_type", pl.String()),
        ("tvl_usd", pl.Float64()),
        ("base_apr", pl.Float64()),
        ("reward_apr", pl.Float64()),
        ("rewards_usd", pl.Float64()),
        # Fixed base APR score for farm types/assets not ranked on raw APR
        ("base_apr_override", pl.Float64()),
    ]
)

SCORED_FARMS_SCHEMA = pl.Schema(
    [
        ("id", pl.Int64()),
        ("chef", pl.String()),
        ("chain", pl.String()),
        ("protocol", pl.String()),
        ("asset_address", pl.String()),
        ("asset_symbol", pl.String()),
        ("farm_type", pl.String()),
        ("tvl_usd", pl.Float64()),
        ("base_apr", pl.Float64()),
        ("reward_apr", pl.Float64()),
        ("rewards_usd", pl.Float64()),
        ("tvl_score", pl.Float64()),
        ("base_apr_score", pl.Float64()),
        ("reward_apr_score", pl.Float64()),
        ("rewards_score", pl.Float64()),
        ("raw_score", pl.Float64()),
        ("total_score", pl.Float64()),
    ]
)
