"""Indentation digest, a mergeable distribution summary for one file.

Indentation depth of each code line is a cheap, language-agnostic proxy
for nesting. Rather than keep every line, a digest stores a fixed-width
histogram of depths (one bucket per column, the last bucket absorbing
everything deeper) plus exact running sums, so that:

* percentiles come straight from the cumulative histogram;
* mean and standard deviation are exact (sums never clamp);
* digests merge by bucket addition, so a directory's distribution is the
  exact distribution of all its code lines rather than an average of
  averages.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import numpy as np

from .collector import LineCounts

# Depths 0..HISTOGRAM_SIZE-2 get their own bucket; the last bucket holds
# every depth >= HISTOGRAM_SIZE-1.
HISTOGRAM_SIZE = 256

PERCENTILES = (50, 75, 90, 99)


def _frozen(counts: np.ndarray) -> np.ndarray:
    counts.setflags(write=False)
    return counts


def _empty_counts() -> np.ndarray:
    return _frozen(np.zeros(HISTOGRAM_SIZE, dtype=np.int64))


@dataclass(frozen=True, eq=False)
class IndentationDigest:
    """Line totals plus the distribution of code-line indentation depth."""

    blank: int = 0
    comment: int = 0
    code: int = 0
    counts: np.ndarray = field(default_factory=_empty_counts, repr=False)
    depth_sum: int = 0
    depth_sum_sq: int = 0
    max_depth: int = 0
    space_indented: int = 0
    tab_indented: int = 0

    @classmethod
    def from_line_counts(cls, lines: LineCounts, tab_width: int = 4) -> IndentationDigest:
        """Build a digest from collector output."""
        depths = [line.depth(tab_width) for line in lines.lines]
        counts = np.zeros(HISTOGRAM_SIZE, dtype=np.int64)
        if depths:
            clamped = np.minimum(np.asarray(depths, dtype=np.int64), HISTOGRAM_SIZE - 1)
            counts += np.bincount(clamped, minlength=HISTOGRAM_SIZE)
        return cls(
            blank=lines.blank,
            comment=lines.comment,
            code=lines.code,
            counts=_frozen(counts),
            depth_sum=sum(depths),
            depth_sum_sq=sum(d * d for d in depths),
            max_depth=max(depths, default=0),
            space_indented=sum(1 for line in lines.lines if line.spaces and not line.tabs),
            tab_indented=sum(1 for line in lines.lines if line.tabs),
        )

    @classmethod
    def merge_all(cls, digests: Iterable[IndentationDigest]) -> IndentationDigest:
        """Combine digests by adding totals and histogram buckets."""
        result = cls()
        for digest in digests:
            result = result.merge(digest)
        return result

    def merge(self, other: IndentationDigest) -> IndentationDigest:
        return IndentationDigest(
            blank=self.blank + other.blank,
            comment=self.comment + other.comment,
            code=self.code + other.code,
            counts=_frozen(self.counts + other.counts),
            depth_sum=self.depth_sum + other.depth_sum,
            depth_sum_sq=self.depth_sum_sq + other.depth_sum_sq,
            max_depth=max(self.max_depth, other.max_depth),
            space_indented=self.space_indented + other.space_indented,
            tab_indented=self.tab_indented + other.tab_indented,
        )

    # ── Derived statistics ─────────────────────────────────────

    @property
    def lines(self) -> int:
        return self.blank + self.comment + self.code

    @property
    def measured(self) -> int:
        """Number of lines in the histogram."""
        return int(self.counts.sum())

    @property
    def mean(self) -> float:
        n = self.measured
        return self.depth_sum / n if n else 0.0

    @property
    def stddev(self) -> float:
        n = self.measured
        if n == 0:
            return 0.0
        variance = self.depth_sum_sq / n - self.mean**2
        return math.sqrt(max(0.0, variance))

    def percentile(self, q: float) -> int:
        """Nearest-rank percentile of indentation depth (0 if empty)."""
        n = self.measured
        if n == 0:
            return 0
        rank = max(1, math.ceil(q / 100.0 * n))
        cumulative = np.cumsum(self.counts)
        return int(np.searchsorted(cumulative, rank))

    def histogram(self) -> list[list[int]]:
        """Sparse ``[depth, count]`` pairs for non-empty buckets."""
        (nonzero,) = np.nonzero(self.counts)
        return [[int(d), int(self.counts[d])] for d in nonzero]

    # ── Serialisation ──────────────────────────────────────────

    def loc_dict(self) -> dict[str, int]:
        return {
            "blank": self.blank,
            "comment": self.comment,
            "code": self.code,
            "lines": self.lines,
        }

    def indentation_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "lines": self.measured,
            "sum": self.depth_sum,
            "sum_sq": self.depth_sum_sq,
            "mean": round(self.mean, 4),
            "stddev": round(self.stddev, 4),
            "max": self.max_depth,
            "spaces": self.space_indented,
            "tabs": self.tab_indented,
            "histogram": self.histogram(),
        }
        for q in PERCENTILES:
            data[f"p{q}"] = self.percentile(q)
        return data

    @classmethod
    def from_dicts(
        cls, loc: dict[str, Any], indentation: Optional[dict[str, Any]]
    ) -> IndentationDigest:
        """Rebuild a digest from its serialised ``loc`` and ``indentation`` parts."""
        indentation = indentation or {}
        counts = np.zeros(HISTOGRAM_SIZE, dtype=np.int64)
        for depth, count in indentation.get("histogram", []):
            counts[int(depth)] = int(count)
        return cls(
            blank=int(loc.get("blank", 0)),
            comment=int(loc.get("comment", 0)),
            code=int(loc.get("code", 0)),
            counts=_frozen(counts),
            depth_sum=int(indentation.get("sum", 0)),
            depth_sum_sq=int(indentation.get("sum_sq", 0)),
            max_depth=int(indentation.get("max", 0)),
            space_indented=int(indentation.get("spaces", 0)),
            tab_indented=int(indentation.get("tabs", 0)),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IndentationDigest):
            return NotImplemented
        return (
            self.blank == other.blank
            and self.comment == other.comment
            and self.code == other.code
            and self.depth_sum == other.depth_sum
            and self.depth_sum_sq == other.depth_sum_sq
            and self.max_depth == other.max_depth
            and self.space_indented == other.space_indented
            and self.tab_indented == other.tab_indented
            and bool(np.array_equal(self.counts, other.counts))
        )

    __hash__ = object.__hash__


EMPTY_DIGEST = IndentationDigest()
