"""Benchmark adapters.

Benchmarks are optional aggregate statistics maintained outside this
service. An adapter returns them for an assessment or None; a missing table,
missing rows or a failing query all read as "no benchmark available".
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from scorecard.db.base import get_engine
from scorecard.models.benchmark import Benchmarks, BenchmarkStats

logger = logging.getLogger(__name__)


class BenchmarkAdapter(Protocol):
    def get_benchmarks(self, assessment_id: str) -> Optional[Benchmarks]: ...


class NullBenchmarkAdapter:
    def get_benchmarks(self, assessment_id: str) -> Optional[Benchmarks]:
        return None


class SqlBenchmarkAdapter:
    """Reads the ``benchmark`` table; rows below ``min_sample_size`` are hidden."""

    def __init__(self, min_sample_size: int = 10, engine: Optional[Engine] = None) -> None:
        self.min_sample_size = int(min_sample_size)
        self._engine = engine

    def get_benchmarks(self, assessment_id: str) -> Optional[Benchmarks]:
        try:
            eng = self._engine or get_engine()
            with eng.connect() as conn:
                rows = conn.execute(
                    sql_text(
                        "SELECT category_id, avg_score, median_score, percentile_25, percentile_75, sample_size "
                        "FROM benchmark WHERE assessment_id = :aid"
                    ),
                    {"aid": assessment_id},
                ).mappings().all()
        except SQLAlchemyError:
            logger.warning("benchmarks_unavailable assessment=%s", assessment_id, exc_info=True)
            return None

        overall: Optional[BenchmarkStats] = None
        categories: dict[str, BenchmarkStats] = {}
        for r in rows:
            if int(r["sample_size"] or 0) < self.min_sample_size:
                continue
            stats = BenchmarkStats(
                avg_score=float(r["avg_score"]),
                median_score=float(r["median_score"]),
                percentile_25=float(r["percentile_25"]),
                percentile_75=float(r["percentile_75"]),
                sample_size=int(r["sample_size"]),
            )
            if r["category_id"] is None:
                overall = stats
            else:
                categories[str(r["category_id"])] = stats
        if overall is None and not categories:
            return None
        return Benchmarks(overall=overall, categories=categories)


__all__ = ["BenchmarkAdapter", "NullBenchmarkAdapter", "SqlBenchmarkAdapter"]
