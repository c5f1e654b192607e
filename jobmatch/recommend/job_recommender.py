# jobmatch/recommend/job_recommender.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List

from jobmatch import logs
from jobmatch.core.records import Job, parse_object_id
from jobmatch.core.types import ModelType
from jobmatch.features.extractor import JOB_FEATURES, CandidateRow
from jobmatch.recommend import heuristics
from jobmatch.recommend.base import HEURISTIC, RankingRecommender
from jobmatch.recommend.explanations import Explanation, explain_job
from jobmatch.recommend.weights import DEFAULT_JOB_WEIGHTS


@dataclass(frozen=True)
class JobRecommendation:
    job: Job
    score: float
    explanations: List[Explanation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job.model_dump(mode="json", by_alias=True),
            "score": round(self.score, 6),
            "explanations": [e.to_dict() for e in self.explanations],
        }


class JobRecommender(RankingRecommender):
    """
    Jobs for one student.

    Eligible jobs: not applied to by the student and starting after today.
    """

    model_type = ModelType.JOB_RECOMMENDATION
    feature_names = JOB_FEATURES
    default_weights = DEFAULT_JOB_WEIGHTS

    def __init__(self, *args, today: Callable[[], date] = date.today, **kwargs):
        super().__init__(*args, **kwargs)
        self._today = today

    def recommend(self, student_id: str, mode: str = "learned") -> List[JobRecommendation]:
        sid = parse_object_id(student_id, "studentId")
        snapshot = self.store.snapshot()

        student = snapshot.student_index().get(sid)
        if student is None:
            logs.info(f"[JobRecommender] student {sid} not found")
            return []

        today = self._today()
        applied = {a.job_id for a in snapshot.applications if a.student_id == sid}
        eligible = [j for j in snapshot.jobs if j.job_id not in applied and j.start_date > today]
        if not eligible:
            logs.info(f"[JobRecommender] no eligible jobs for student {sid}")
            return []

        samples = self.extractor.extract(snapshot)
        companies = snapshot.company_index()
        rows: List[CandidateRow] = []
        for job in eligible:
            row = self.extractor.candidate(
                student, job, companies.get(job.company_id), samples.student_keys, samples.job_keys
            )
            if row is not None:
                rows.append(row)

        ranked = None if mode == HEURISTIC else self.score_learned(rows, samples)
        if ranked is None:
            return self._heuristic(rows)

        weights = self.weights(samples)
        return [
            JobRecommendation(
                job=row.job,
                score=score,
                explanations=explain_job(row, companies.get(row.job.company_id), weights),
            )
            for row, score in ranked
        ]

    @staticmethod
    def _heuristic(rows: List[CandidateRow]) -> List[JobRecommendation]:
        scored = [JobRecommendation(job=r.job, score=heuristics.job_score(r.features)) for r in rows]
        return sorted(scored, key=lambda r: r.score, reverse=True)
