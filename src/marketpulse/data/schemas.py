# src/marketpulse/data/schemas.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Final, Iterable, Tuple


@dataclass(frozen=True)
class ActionsSchema:
    """
    Canonical schema of the raw action log.
    Keep this stable: ingestion, validation and both pipelines conform to it.
    """
    USER_ID: Final[str] = "user_id"
    ACTION_TYPE: Final[str] = "action_type"
    ACTION_TS: Final[str] = "action_ts"
    ITEM_ID: Final[str] = "item_id"
    DEVICE: Final[str] = "device"
    B2C: Final[str] = "b2c"

    # action_type codes
    POST: Final[str] = "P"
    REPLY: Final[str] = "R"

    @property
    def required_columns(self) -> Iterable[str]:
        return (self.USER_ID, self.ACTION_TYPE, self.ACTION_TS, self.ITEM_ID)

    @property
    def all_columns(self) -> Tuple[str, ...]:
        return (self.USER_ID, self.ACTION_TYPE, self.ACTION_TS, self.ITEM_ID, self.DEVICE, self.B2C)

    @property
    def not_null_columns(self) -> Tuple[str, ...]:
        return (self.USER_ID, self.ACTION_TYPE, self.ACTION_TS)

    @property
    def qualifying_types(self) -> Tuple[str, ...]:
        """Action types that count as an interaction for segmentation."""
        return (self.POST, self.REPLY)


SCHEMA = ActionsSchema()


# Published relations and their column order.
OUTPUT_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "user_segment": ("user_id", "segment"),
    "items": ("item_id", "post_date"),
    "dates": (
        "dates_datekey",
        "dates_date",
        "dates_time",
        "dates_day",
        "dates_month_num",
        "dates_year",
        "dates_month",
    ),
    "fact_item_liquidity": (
        "item_id",
        "post_date",
        "replies_within_1_day",
        "replies_within_7_days",
    ),
    "fact_liquidity": (
        "post_date",
        "items_posted",
        "liquid_1d_count",
        "liquid_3in7d_count",
        "liquid_5in7d_count",
        "rate_1d",
        "rate_3in7d",
        "rate_5in7d",
    ),
}

# Day-granularity columns; published as DATE rather than midnight TIMESTAMP.
DATE_COLUMNS: Tuple[str, ...] = ("post_date", "dates_date")

SEGMENTS: Tuple[str, ...] = ("Lost", "Repeat", "Dormant", "Novice", "Trial")
