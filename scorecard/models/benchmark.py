"""Benchmark aggregate types supplied by the benchmark adapter."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class BenchmarkStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    avg_score: float
    median_score: float
    percentile_25: float
    percentile_75: float
    sample_size: int


class Benchmarks(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: Optional[BenchmarkStats] = None
    categories: Dict[str, BenchmarkStats] = Field(default_factory=dict)


__all__ = ["BenchmarkStats", "Benchmarks"]
