"""
Reading grouping and time columns from the auxiliary data table.

Everything here works on a private copy of the requested columns; the caller's
table is never modified. Missing values (None, NaN, NaT, pd.NA) mark a row as
unavailable: it is left out of the grouping or has no lag partner.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from vcemetrics.exceptions import ConfigurationError
from vcemetrics.typing import AuxData, as_frame

logger = logging.getLogger(__name__)

__all__ = ["Grouping", "TimeAlignment", "group_codes", "read_columns"]


def read_columns(aux: AuxData | None, columns: Sequence[str], *, n: int) -> pd.DataFrame:
    if aux is None:
        raise ConfigurationError(f"Auxiliary data with column(s) {list(columns)} is required")
    return as_frame(aux, columns, n=n)


@dataclass(frozen=True)
class Grouping:
    """Partition of the rows defined by one or more columns.

    codes    : (n,) int64 in {0,...,n_groups-1}; -1 for rows with a missing key
    n_groups : number of distinct (non-missing) key combinations
    """

    columns: tuple[str, ...]
    codes: np.ndarray
    n_groups: int

    @property
    def valid(self) -> np.ndarray:
        return self.codes >= 0

    @property
    def n_excluded(self) -> int:
        return int((self.codes < 0).sum())


def group_codes(df: pd.DataFrame, columns: Sequence[str]) -> Grouping:
    """Interaction grouping of `columns`: one group per distinct value tuple."""
    cols = list(columns)
    n = len(df)
    na = df[cols].isna().any(axis=1).to_numpy()

    codes = np.full(n, -1, dtype=np.int64)
    G = 0
    if (~na).any():
        ng = df.loc[~na, cols].groupby(cols, sort=True, observed=True).ngroup().to_numpy()
        uniq, inv = np.unique(ng, return_inverse=True)
        codes[~na] = inv.reshape(-1)
        G = int(uniq.shape[0])

    logger.debug("Grouping on %s: %d groups, %d rows excluded", cols, G, int(na.sum()))
    return Grouping(columns=tuple(cols), codes=codes, n_groups=G)


@dataclass(frozen=True)
class TimeAlignment:
    """Exact-key lag alignment on a numeric time column.

    Observation t is paired at lag L with the observation whose time equals
    time[t] - L, wherever it sits in the table. Gaps are allowed; rows without
    such a partner (or with a missing time) are unavailable at that lag.
    """

    keys: pd.Index
    rows: np.ndarray
    n: int

    @classmethod
    def from_column(cls, time: pd.Series) -> "TimeAlignment":
        # to_numeric would turn these into nanosecond counts that never match a lag
        if (
            pd.api.types.is_datetime64_any_dtype(time)
            or pd.api.types.is_timedelta64_dtype(time)
            or isinstance(time.dtype, pd.PeriodDtype)
        ):
            raise ConfigurationError(
                f"time column {time.name!r} must be numeric (integer periods). Got dtype {time.dtype}"
            )
        try:
            t = pd.to_numeric(time, errors="raise")
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"time column {time.name!r} must be numeric") from exc

        valid = t.notna().to_numpy()
        rows = np.flatnonzero(valid)
        keys = pd.Index(t[valid].to_numpy(dtype=np.float64))
        if not keys.is_unique:
            raise ConfigurationError(
                f"time column {time.name!r} must uniquely identify observations (duplicate keys found)"
            )
        return cls(keys=keys, rows=rows, n=int(len(t)))

    def partners(self, lag: int) -> np.ndarray:
        """(n,) int64 row index of the lag-`lag` partner, -1 where unavailable."""
        out = np.full(self.n, -1, dtype=np.int64)
        pos = self.keys.get_indexer(self.keys.to_numpy() - float(lag))
        hit = pos >= 0
        out[self.rows[hit]] = self.rows[pos[hit]]
        return out
