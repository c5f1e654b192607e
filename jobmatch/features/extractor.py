# jobmatch/features/extractor.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from jobmatch import logs
from jobmatch.config.recommend_config import RecommendConfig
from jobmatch.core.records import Company, Job, Student
from jobmatch.store.base import Snapshot

# ============================================================
# Feature names (shared by training, serving and explanations)
# ============================================================
COMPANY_RATING = "company_rating"
HOURLY_PAY = "hourly_pay"
JOB_TYPE_EXPERIENCE = "job_type_experience"
TRAIT_MATCH = "trait_match_score"
STUDENT_RATING = "student_rating"

JOB_FEATURES: List[str] = [COMPANY_RATING, HOURLY_PAY, JOB_TYPE_EXPERIENCE, TRAIT_MATCH]
STUDENT_FEATURES: List[str] = [JOB_TYPE_EXPERIENCE, TRAIT_MATCH, STUDENT_RATING, COMPANY_RATING, HOURLY_PAY]

KEY_COLUMNS: List[str] = ["student_key", "job_key"]

# neutral prior when an employer has no feedback yet
DEFAULT_COMPANY_RATING = 0.5
# students without feedback start low in the learned model
DEFAULT_STUDENT_RATING = 0.2


# ============================================================
# Key map (request / run scoped)
# ============================================================
@dataclass(frozen=True)
class KeyMap:
    """
    Entity id → dense key (1..n) for one snapshot.

    Keys are positional, so a map is only valid for the snapshot it was
    built from. Never persist it.
    """
    keys: Mapping[str, int]

    @classmethod
    def build(cls, ids: Iterable[str]) -> "KeyMap":
        return cls({id_: i + 1 for i, id_ in enumerate(ids)})

    def get(self, id_: str) -> Optional[int]:
        return self.keys.get(id_)

    def __contains__(self, id_: str) -> bool:
        return id_ in self.keys

    def __len__(self) -> int:
        return len(self.keys)


# ============================================================
# Samples
# ============================================================
@dataclass(frozen=True)
class TrainingSample:
    student_key: int
    job_key: int
    label: bool
    features: Mapping[str, float]
    student_id: str = ""
    job_id: str = ""


@dataclass(frozen=True)
class SampleSet:
    positive: List[TrainingSample]
    negative: List[TrainingSample]
    student_keys: KeyMap
    job_keys: KeyMap
    skipped: int = 0

    @property
    def all(self) -> List[TrainingSample]:
        return self.positive + self.negative

    def __len__(self) -> int:
        return len(self.positive) + len(self.negative)


@dataclass
class CandidateRow:
    """One request-time (student, job) pair with raw and normalized features."""
    student: Student
    job: Job
    student_key: int
    job_key: int
    features: Dict[str, float] = field(default_factory=dict)
    experience_count: int = 0


# ============================================================
# Extractor
# ============================================================
class FeatureExtractor:
    """
    FeatureExtractor (FINAL)

    Turns store records into normalized [0, 1] features and labeled samples.

    - experience   : min(prior jobs of the same type, cap) / cap
    - trait match  : mean over required traits of positive / (positive + negative),
                     0 for a trait without signal, 0 when nothing is required
    - company      : thumbs up / total, DEFAULT_COMPANY_RATING without feedback
    - student      : thumbs up / total, DEFAULT_STUDENT_RATING without feedback
    - pay          : min(hourly_pay / pay_ceiling, 1)
    """

    def __init__(self, cfg: RecommendConfig | None = None):
        self.cfg = cfg or RecommendConfig()

    # ---------------------------------------------------------
    # scalar features
    # ---------------------------------------------------------
    def experience_count(self, student: Student, job_type: str) -> int:
        return min(student.experience(job_type), self.cfg.experience_cap)

    def experience_score(self, student: Student, job_type: str) -> float:
        return self.experience_count(student, job_type) / self.cfg.experience_cap

    @staticmethod
    def trait_match(student: Student, required_traits: Sequence[str]) -> float:
        if not required_traits:
            return 0.0
        scores = []
        for name in required_traits:
            t = student.trait(name)
            total = (t.positive + t.negative) if t is not None else 0
            scores.append(t.positive / total if total else 0.0)
        return sum(scores) / len(scores)

    @staticmethod
    def company_rating(company: Optional[Company], default: float = DEFAULT_COMPANY_RATING) -> float:
        if company is None or company.thumbs_received is None:
            return default
        thumbs = company.thumbs_received
        return thumbs.up / thumbs.total if thumbs.total else default

    @staticmethod
    def student_rating(student: Student, default: float = DEFAULT_STUDENT_RATING) -> float:
        thumbs = student.thumbs_received
        if thumbs is None or thumbs.total == 0:
            return default
        return thumbs.up / thumbs.total

    def pay_score(self, hourly_pay: float) -> float:
        return min(max(hourly_pay, 0.0) / self.cfg.pay_ceiling, 1.0)

    def features(self, student: Student, job: Job, company: Optional[Company]) -> Dict[str, float]:
        return {
            COMPANY_RATING: self.company_rating(company),
            HOURLY_PAY: self.pay_score(job.hourly_pay),
            JOB_TYPE_EXPERIENCE: self.experience_score(student, job.type),
            TRAIT_MATCH: self.trait_match(student, job.required_traits),
            STUDENT_RATING: self.student_rating(student),
        }

    # ---------------------------------------------------------
    # training samples
    # ---------------------------------------------------------
    def extract(self, snapshot: Snapshot) -> SampleSet:
        """
        Labeled samples from application history.

        Applications whose student or job is missing are skipped, as are
        statuses that are neither positive nor negative (e.g. pending).
        """
        students = snapshot.student_index()
        jobs = snapshot.job_index()
        companies = snapshot.company_index()

        student_keys = KeyMap.build(s.student_id for s in snapshot.students)
        job_keys = KeyMap.build(j.job_id for j in snapshot.jobs)

        positive: List[TrainingSample] = []
        negative: List[TrainingSample] = []
        skipped = 0

        for app in snapshot.applications:
            if not (app.is_positive or app.is_negative):
                continue

            student = students.get(app.student_id)
            job = jobs.get(app.job_id)
            if student is None or job is None:
                skipped += 1
                continue

            sample = TrainingSample(
                student_key=student_keys.get(app.student_id),
                job_key=job_keys.get(app.job_id),
                label=app.is_positive,
                features=self.features(student, job, companies.get(job.company_id)),
                student_id=app.student_id,
                job_id=app.job_id,
            )
            (positive if sample.label else negative).append(sample)

        if skipped:
            logs.warning(f"[FeatureExtractor] skipped {skipped} applications with missing student/job")
        logs.debug(f"[FeatureExtractor] positive={len(positive)} negative={len(negative)}")

        return SampleSet(
            positive=positive,
            negative=negative,
            student_keys=student_keys,
            job_keys=job_keys,
            skipped=skipped,
        )

    # ---------------------------------------------------------
    # request-time candidates
    # ---------------------------------------------------------
    def candidate(
        self,
        student: Student,
        job: Job,
        company: Optional[Company],
        student_keys: KeyMap,
        job_keys: KeyMap,
    ) -> Optional[CandidateRow]:
        s_key = student_keys.get(student.student_id)
        j_key = job_keys.get(job.job_id)
        if s_key is None or j_key is None:
            return None
        return CandidateRow(
            student=student,
            job=job,
            student_key=s_key,
            job_key=j_key,
            features=self.features(student, job, company),
            experience_count=self.experience_count(student, job.type),
        )


# ============================================================
# DataFrame views
# ============================================================
def samples_to_frame(samples: Sequence[TrainingSample], feature_names: Sequence[str]) -> pd.DataFrame:
    rows = [
        {
            "student_key": s.student_key,
            "job_key": s.job_key,
            **{name: float(s.features[name]) for name in feature_names},
            "label": int(s.label),
        }
        for s in samples
    ]
    return pd.DataFrame(rows, columns=KEY_COLUMNS + list(feature_names) + ["label"])


def candidates_to_frame(rows: Sequence[CandidateRow], feature_names: Sequence[str]) -> pd.DataFrame:
    data = [
        {
            "student_key": r.student_key,
            "job_key": r.job_key,
            **{name: float(r.features[name]) for name in feature_names},
        }
        for r in rows
    ]
    return pd.DataFrame(data, columns=KEY_COLUMNS + list(feature_names))


NO_TRAITS_TOKEN = "_none"
PAY_INPUT_COLUMNS: List[str] = ["type", "place_of_work", "required_traits"]


def pay_row(job_type: str, place_of_work: str, required_traits: Sequence[str]) -> Dict[str, str]:
    # bag-of-traits needs at least one token per row
    return {
        "type": job_type or "",
        "place_of_work": place_of_work or "",
        "required_traits": ",".join(required_traits) or NO_TRAITS_TOKEN,
    }


def jobs_to_pay_frame(jobs: Sequence[Job]) -> pd.DataFrame:
    """Pay-model rows: categorical type/place, comma-joined traits, target."""
    data = [
        {**pay_row(j.type, j.place_of_work, j.required_traits), "hourly_pay": float(j.hourly_pay)}
        for j in jobs
    ]
    return pd.DataFrame(data, columns=["type", "place_of_work", "required_traits", "hourly_pay"])
