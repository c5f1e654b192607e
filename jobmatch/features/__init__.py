from .extractor import (
    FeatureExtractor,
    KeyMap,
    SampleSet,
    TrainingSample,
    JOB_FEATURES,
    STUDENT_FEATURES,
)

__all__ = [
    "FeatureExtractor",
    "KeyMap",
    "SampleSet",
    "TrainingSample",
    "JOB_FEATURES",
    "STUDENT_FEATURES",
]
