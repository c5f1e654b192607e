# jobmatch/config/training_config.py
from __future__ import annotations

from datetime import time

from pydantic import BaseModel, Field, field_validator


class TrainingConfig(BaseModel):
    """
    TrainingConfig (FINAL)

    Scheduler, promotion thresholds, cache TTL and split parameters.
    """

    # scheduler
    enabled: bool = True
    scheduled_time: str = "22:00"
    cooldown_seconds: float = 300.0

    # serving cache
    cache_ttl_seconds: float = 3600.0

    # promotion
    min_improvement: float = 0.05
    tie_tolerance: float = 0.01

    # data
    min_samples: int = Field(default=10, ge=1)
    test_fraction: float = Field(default=0.2, gt=0.0, lt=1.0)
    pay_test_fraction: float = Field(default=0.3, gt=0.0, lt=1.0)
    max_training_hourly_pay: float = 10.0

    # artifacts
    model_dir: str = "models"
    framework: str = "scikit-learn"

    @field_validator("scheduled_time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        time.fromisoformat(v)
        return v

    def scheduled_time_of_day(self) -> time:
        return time.fromisoformat(self.scheduled_time)
