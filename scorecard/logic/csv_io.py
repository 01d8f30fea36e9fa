"""RFC4180 CSV export of score results.

One row per category in category sort_order, followed by a single
``__overall__`` row. A missing tier is exported as an empty cell.
"""

from __future__ import annotations

import csv
import io

from scorecard.models.score_types import ScoreResult

HEADER = [
    "category_id",
    "category_name",
    "include_in_total",
    "total_points",
    "max_points",
    "percentage",
    "tier",
]

OVERALL_ROW_ID = "__overall__"


def build_score_csv(result: ScoreResult, *, include_header: bool = True) -> bytes:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\r\n")
    if include_header:
        writer.writerow(HEADER)
    for cs in result.category_scores:
        writer.writerow(
            [
                cs.category_id,
                cs.name,
                "true" if cs.include_in_total else "false",
                cs.total_points,
                cs.max_points,
                cs.percentage,
                cs.tier.label if cs.tier else "",
            ]
        )
    overall = result.overall
    writer.writerow(
        [
            OVERALL_ROW_ID,
            "Overall",
            "true",
            overall.total_points,
            overall.total_max_points,
            overall.percentage,
            overall.tier.label if overall.tier else "",
        ]
    )
    return buf.getvalue().encode("utf-8")


__all__ = ["HEADER", "OVERALL_ROW_ID", "build_score_csv"]
