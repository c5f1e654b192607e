# jobmatch/core/types.py
from __future__ import annotations

from enum import Enum

from jobmatch.utils.errors import UserInputError


class ModelType(str, Enum):
    """
    Closed set of trainable model types.

    Adding a member requires a matching row in training/specs.py.
    """

    JOB_RECOMMENDATION = "JobRecommendation"
    STUDENT_RECOMMENDATION = "StudentRecommendation"
    JOB_PAY_PREDICTION = "JobPayPrediction"

    @classmethod
    def parse(cls, value: "str | ModelType") -> "ModelType":
        """Case-insensitive lookup by value. Unknown names raise UserInputError."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        raise UserInputError(f"Invalid model type: {value}")


class ModelStage(str, Enum):
    NONE = "None"
    STAGING = "Staging"
    PRODUCTION = "Production"
    ARCHIVED = "Archived"


class RunStatus(str, Enum):
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    FAILED = "FAILED"


class ModelTask(str, Enum):
    CLASSIFICATION = "classification"
    REGRESSION = "regression"
