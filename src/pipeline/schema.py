# -*- coding: utf-8 -*-
"""
schema.py

Purpose
-------
Single source of truth for the Steam games extract: the 39-column source
header, the 17 studied columns kept by the cleaner, and the ordered
estimated-owner buckets.

Owner ranges arrive as text ("20000 - 50000"). They are used both as display
labels and as sortable ranges, so they are modelled once here as an ordered
enumeration with numeric bounds instead of being re-parsed at every use site.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional

import pandas as pd

# --- 1) Column names ---------------------------------------------------------
ID_COL = "AppID"
NAME = "Name"
RELEASE_DATE = "Release date"
OWNERS = "Estimated owners"
PRICE = "Price"
WINDOWS = "Windows"
MAC = "Mac"
LINUX = "Linux"
USER_SCORE = "User score"
POSITIVE = "Positive"
NEGATIVE = "Negative"
RECOMMENDATIONS = "Recommendations"
AVG_FOREVER = "Average playtime forever"
AVG_2WEEKS = "Average playtime two weeks"
MEDIAN_FOREVER = "Median playtime forever"
MEDIAN_2WEEKS = "Median playtime two weeks"
PUBLISHERS = "Publishers"
GENRES = "Genres"

# Derived columns
YEAR = "Year"
GENRE = "Genre"
OWNERS_MID = "Owners midpoint"
GENRE_COUNT = "Genre count"
GENRE_COUNT_LABEL = "Genre count label"

SOURCE_COLUMNS: List[str] = [
    "AppID", "Name", "Release date", "Estimated owners", "Peak CCU",
    "Required age", "Price", "DLC count", "About the game",
    "Supported languages", "Full audio languages", "Reviews", "Header image",
    "Website", "Support url", "Support email", "Windows", "Mac", "Linux",
    "Metacritic score", "Metacritic url", "User score", "Positive", "Negative",
    "Score rank", "Achievements", "Recommendations", "Notes",
    "Average playtime forever", "Average playtime two weeks",
    "Median playtime forever", "Median playtime two weeks", "Developers",
    "Publishers", "Categories", "Genres", "Tags", "Screenshots", "Movies",
]

STUDIED_COLUMNS: List[str] = [
    NAME, RELEASE_DATE, OWNERS, PRICE, WINDOWS, MAC, LINUX, USER_SCORE,
    POSITIVE, NEGATIVE, RECOMMENDATIONS, AVG_FOREVER, AVG_2WEEKS,
    MEDIAN_FOREVER, MEDIAN_2WEEKS, PUBLISHERS, GENRES,
]

PLATFORM_COLUMNS: List[str] = [WINDOWS, MAC, LINUX]

NUMERIC_COLUMNS: List[str] = [
    PRICE, USER_SCORE, POSITIVE, NEGATIVE, RECOMMENDATIONS,
    AVG_FOREVER, AVG_2WEEKS, MEDIAN_FOREVER, MEDIAN_2WEEKS,
]


# --- 2) Owner buckets --------------------------------------------------------
_RANGE_RE = re.compile(r"^\s*(\d+)\s*[-–]\s*(\d+)\s*$")


class OwnerBucket(Enum):
    """Estimated-owner range, declared smallest first (canonical business order)."""

    NONE = (0, 0)
    UP_TO_20K = (0, 20_000)
    UP_TO_50K = (20_000, 50_000)
    UP_TO_100K = (50_000, 100_000)
    UP_TO_200K = (100_000, 200_000)
    UP_TO_500K = (200_000, 500_000)
    UP_TO_1M = (500_000, 1_000_000)
    UP_TO_2M = (1_000_000, 2_000_000)
    UP_TO_5M = (2_000_000, 5_000_000)
    UP_TO_10M = (5_000_000, 10_000_000)
    UP_TO_20M = (10_000_000, 20_000_000)
    UP_TO_50M = (20_000_000, 50_000_000)
    UP_TO_100M = (50_000_000, 100_000_000)
    UP_TO_200M = (100_000_000, 200_000_000)

    @property
    def lower(self) -> int:
        return self.value[0]

    @property
    def upper(self) -> int:
        return self.value[1]

    @property
    def midpoint(self) -> float:
        return (self.lower + self.upper) / 2.0

    @property
    def label(self) -> str:
        """Source-form label, e.g. '20000 - 50000'."""
        return f"{self.lower} - {self.upper}"

    @property
    def rank(self) -> int:
        return _BUCKET_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, OwnerBucket):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, OwnerBucket):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, OwnerBucket):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, OwnerBucket):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def from_label(cls, label: str) -> "OwnerBucket":
        """
        Parse a '<low> - <high>' label (an en dash is also accepted).

        Raises
        ------
        ValueError
            If the text is not one of the 14 known ranges.
        """
        m = _RANGE_RE.match(str(label))
        if m is None:
            raise ValueError(f"Not an owner range: {label!r}")
        key = (int(m.group(1)), int(m.group(2)))
        for bucket in cls:
            if bucket.value == key:
                return bucket
        raise ValueError(f"Unknown owner range: {label!r}")

    @classmethod
    def parse(cls, label) -> Optional["OwnerBucket"]:
        """Like `from_label` but returns None for unknown text."""
        try:
            return cls.from_label(label)
        except ValueError:
            return None


_BUCKET_ORDER: List[OwnerBucket] = list(OwnerBucket)

OWNER_LABELS: List[str] = [b.label for b in _BUCKET_ORDER]
OWNER_DTYPE = pd.CategoricalDtype(categories=OWNER_LABELS, ordered=True)
NO_OWNERS_LABEL = OwnerBucket.NONE.label


def bucket_lower_bounds() -> dict:
    """Label -> lower bound, for vectorised sort keys."""
    return {b.label: b.lower for b in _BUCKET_ORDER}


def bucket_midpoints() -> dict:
    """Label -> midpoint of the range."""
    return {b.label: b.midpoint for b in _BUCKET_ORDER}
