# jobmatch/recommend/student_recommender.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from jobmatch import logs
from jobmatch.core.records import Application, Student, parse_object_id
from jobmatch.core.types import ModelType
from jobmatch.features.extractor import STUDENT_FEATURES, CandidateRow
from jobmatch.recommend import heuristics
from jobmatch.recommend.base import HEURISTIC, RankingRecommender
from jobmatch.recommend.explanations import Explanation, explain_student
from jobmatch.recommend.weights import DEFAULT_STUDENT_WEIGHTS


@dataclass(frozen=True)
class StudentRecommendation:
    application: Application
    student: Student
    score: float
    explanations: List[Explanation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "application": self.application.model_dump(mode="json", by_alias=True),
            "student": self.student.model_dump(mode="json", by_alias=True),
            "score": round(self.score, 6),
            "explanations": [e.to_dict() for e in self.explanations],
        }


class StudentRecommender(RankingRecommender):
    """
    Applicants of one job, ranked for the employer.
    """

    model_type = ModelType.STUDENT_RECOMMENDATION
    feature_names = STUDENT_FEATURES
    default_weights = DEFAULT_STUDENT_WEIGHTS

    def recommend(self, job_id: str, mode: str = "learned") -> List[StudentRecommendation]:
        jid = parse_object_id(job_id, "jobId")
        snapshot = self.store.snapshot()

        job = snapshot.job_index().get(jid)
        if job is None:
            logs.info(f"[StudentRecommender] job {jid} not found")
            return []

        students = snapshot.student_index()
        # first application per student
        applications: Dict[str, Application] = {}
        for app in snapshot.applications:
            if app.job_id == jid and app.student_id in students:
                applications.setdefault(app.student_id, app)
        if not applications:
            logs.info(f"[StudentRecommender] no applicants for job {jid}")
            return []

        samples = self.extractor.extract(snapshot)
        company = snapshot.company_index().get(job.company_id)
        rows: List[CandidateRow] = []
        for sid in applications:
            row = self.extractor.candidate(
                students[sid], job, company, samples.student_keys, samples.job_keys
            )
            if row is not None:
                rows.append(row)

        ranked = None if mode == HEURISTIC else self.score_learned(rows, samples)
        if ranked is None:
            return self._heuristic(rows, applications)

        weights = self.weights(samples)
        return [
            StudentRecommendation(
                application=applications[row.student.student_id],
                student=row.student,
                score=score,
                explanations=explain_student(row, weights),
            )
            for row, score in ranked
        ]

    @staticmethod
    def _heuristic(
        rows: List[CandidateRow], applications: Dict[str, Application]
    ) -> List[StudentRecommendation]:
        scored = [
            StudentRecommendation(
                application=applications[r.student.student_id],
                student=r.student,
                score=heuristics.student_score(r.features, r.student),
            )
            for r in rows
        ]
        return sorted(scored, key=lambda r: r.score, reverse=True)
