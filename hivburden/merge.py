"""Dataset merging: latest observation per country, inner joins and a
two-pass merge with an alternate matching key."""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np
import pandas as pd

from hivburden.normalize import normalize_country_name

_POSITION = "_left_position"


def latest_per_entity(df: pd.DataFrame, entity: str = "country", year: str = "year") -> pd.DataFrame:
    """Keep one row per entity: the one with the maximal year.

    Ties keep the first row in input order. Rows with a missing year are only
    used when the entity has no dated row at all.
    """
    df = df.reset_index(drop=True)
    if df.empty:
        return df
    years = pd.to_numeric(df[year], errors="coerce")
    order = years.sort_values(ascending=False, kind="mergesort", na_position="last").index
    ranked = df.iloc[order]
    return ranked.drop_duplicates(subset=entity, keep="first").sort_index().reset_index(drop=True)


def merge_latest(left: pd.DataFrame, right: pd.DataFrame, on: str = "country",
                 left_year: str = "year", right_year: Optional[str] = "reporting_year") -> pd.DataFrame:
    """Inner join of the latest left row per key with the right table.

    The left table is reduced with latest_per_entity first. The right table
    is reduced the same way when it holds duplicate keys (several surveys
    for one country), so no key appears twice in the output. Keys present
    on one side only are dropped.
    """
    reduced_left = latest_per_entity(left, on, left_year)
    reduced_right = right
    if right[on].duplicated().any():
        if right_year is None or right_year not in right.columns:
            reduced_right = right.drop_duplicates(subset=on, keep="first")
        else:
            reduced_right = latest_per_entity(right, on, right_year)

    merged = pd.merge(reduced_left, reduced_right, on=on, how="inner", validate="one_to_one")

    n_left_only = len(set(reduced_left[on]) - set(reduced_right[on]))
    n_right_only = len(set(reduced_right[on]) - set(reduced_left[on]))
    print(f"Merged {len(merged)} {on} records "
          f"({n_left_only} unmatched on the left, {n_right_only} unmatched on the right)")
    return merged


def two_pass_merge(left: pd.DataFrame, right: pd.DataFrame, on: str = "country",
                   fallback_key: Callable[[object], str] = normalize_country_name,
                   how: str = "inner") -> pd.DataFrame:
    """Merge on an exact key, then on an alternate key for the leftovers.

    Pass one joins on ``on``. Pass two only considers left rows without a
    pass-one match and right rows not claimed in pass one, matching them on
    ``fallback_key(value)``. The exact key always takes precedence and every
    right row is used at most once. The output keeps the left ``on`` values
    and the left row order.

    Non-key columns present in both tables are kept from ``left``; the right
    table's copy is returned with a ``_right`` suffix.

    Args:
        left: Table whose keys are kept
        right: Table to attach; should hold one row per key
        on: Join column present in both tables
        fallback_key: Maps a key value to the alternate matching key
        how: "inner" drops unmatched left rows, "left" keeps them with
            missing right fields

    Returns:
        Merged DataFrame.
    """
    if how not in ("inner", "left"):
        raise ValueError(f"how must be 'inner' or 'left', got {how!r}")

    left = left.reset_index(drop=True)
    left[_POSITION] = np.arange(len(left))
    right = right.drop_duplicates(subset=on, keep="first").reset_index(drop=True)
    overlap = [c for c in right.columns if c != on and c in left.columns]
    right = right.rename(columns={c: f"{c}_right" for c in overlap})

    first = pd.merge(left, right, on=on, how="inner")
    claimed = set(first[on])

    rest_left = left.loc[~left[on].isin(claimed)]
    rest_right = right.loc[~right[on].isin(claimed)]
    rest_right = rest_right.assign(_match=rest_right[on].map(fallback_key))
    rest_right = rest_right.loc[rest_right["_match"] != ""].drop_duplicates(subset="_match", keep="first")

    second = pd.merge(
        rest_left.assign(_match=rest_left[on].map(fallback_key)),
        rest_right.drop(columns=on),
        on="_match",
        how="inner",
    ).drop_duplicates(subset="_match", keep="first").drop(columns="_match")

    parts = [first, second]
    if how == "left":
        matched = set(first[_POSITION]) | set(second[_POSITION])
        parts.append(left.loc[~left[_POSITION].isin(matched)])

    non_empty = [p for p in parts if not p.empty]
    merged = pd.concat(non_empty, ignore_index=True, sort=False) if non_empty else first
    columns = list(left.columns) + [c for c in right.columns if c != on]
    merged = merged.reindex(columns=columns)
    merged = merged.sort_values(_POSITION, kind="mergesort").drop(columns=_POSITION)

    print(f"Two-pass merge on {on}: {len(first)} exact matches, {len(second)} alternate-key matches")
    return merged.reset_index(drop=True)
