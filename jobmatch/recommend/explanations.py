# jobmatch/recommend/explanations.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from jobmatch.core.records import Company
from jobmatch.features.extractor import (
    COMPANY_RATING,
    HOURLY_PAY,
    JOB_TYPE_EXPERIENCE,
    STUDENT_RATING,
    TRAIT_MATCH,
    CandidateRow,
)
from jobmatch.recommend.weights import FeatureWeights

# company reputation is only mentioned from this rating up
COMPANY_EXPLANATION_MIN = 0.4


@dataclass(frozen=True)
class Explanation:
    feature: str
    description: str
    value: float
    contribution: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureName": self.feature,
            "description": self.description,
            "value": round(self.value, 6),
            "contribution": round(self.contribution, 6),
        }


def _jobs(n: int) -> str:
    return "job" if n == 1 else "jobs"


# ============================================================
# bands
# ============================================================
def company_description(rating: float, name: str) -> str:
    if rating >= 0.8:
        return f"{name} has an excellent reputation among students"
    if rating >= 0.6:
        return f"{name} has a good reputation among students"
    return f"{name} has an average reputation"


def pay_description(hourly_pay: float) -> str:
    if hourly_pay >= 15:
        return f"High hourly pay ({hourly_pay:.2f} €/h)"
    if hourly_pay >= 10:
        return f"Good hourly pay ({hourly_pay:.2f} €/h)"
    if hourly_pay >= 7:
        return f"Average hourly pay ({hourly_pay:.2f} €/h)"
    return f"Below-average hourly pay ({hourly_pay:.2f} €/h)"


def job_experience_description(count: int, job_type: str) -> str:
    if count >= 3:
        return f"You have a lot of experience with {job_type} jobs ({count} previous {_jobs(count)})"
    if count >= 1:
        return f"You have experience with {job_type} jobs ({count} previous {_jobs(count)})"
    return f"A new chance to gain experience with {job_type} jobs"


def job_trait_description(score: float) -> str:
    if score >= 0.8:
        return "Your skills are a strong match for this job"
    if score >= 0.6:
        return "Your skills are a good match for this job"
    if score >= 0.4:
        return "Your skills partially match the job requirements"
    if score >= 0.2:
        return "Some of your skills match the job requirements"
    return "This job asks for a different skill profile"


def student_experience_description(count: int, job_type: str) -> str:
    if count >= 3:
        return f"A lot of experience with {job_type} jobs ({count} previous {_jobs(count)})"
    if count >= 1:
        return f"Has experience with {job_type} jobs ({count} previous {_jobs(count)})"
    return f"No experience with {job_type} jobs yet"


def student_trait_description(score: float) -> str:
    if score >= 0.8:
        return "Excellent match with the required skills"
    if score >= 0.6:
        return "Very good match with the required skills"
    if score >= 0.4:
        return "Good match with the required skills"
    if score >= 0.2:
        return "Partial match with the required skills"
    return "Different skill profile from what the job requires"


def student_rating_description(rating: float) -> str:
    if rating >= 0.9:
        return "Rated excellent by previous employers"
    if rating >= 0.7:
        return "Rated well by previous employers"
    if rating >= 0.5:
        return "Rated average by previous employers"
    return "Weak or no rating history"


# ============================================================
# builders
# ============================================================
def _sorted(explanations: List[Explanation]) -> List[Explanation]:
    return sorted(explanations, key=lambda e: e.contribution, reverse=True)


def explain_job(row: CandidateRow, company: Optional[Company], weights: FeatureWeights) -> List[Explanation]:
    f = row.features
    out: List[Explanation] = []

    rating = f[COMPANY_RATING]
    if rating >= COMPANY_EXPLANATION_MIN:
        name = company.name if company is not None and company.name else "This company"
        out.append(Explanation(
            "Company rating", company_description(rating, name),
            rating, rating * weights[COMPANY_RATING],
        ))

    out.append(Explanation(
        "Hourly pay", pay_description(row.job.hourly_pay),
        f[HOURLY_PAY], f[HOURLY_PAY] * weights[HOURLY_PAY],
    ))
    out.append(Explanation(
        "Job type experience", job_experience_description(row.experience_count, row.job.type),
        f[JOB_TYPE_EXPERIENCE], f[JOB_TYPE_EXPERIENCE] * weights[JOB_TYPE_EXPERIENCE],
    ))
    out.append(Explanation(
        "Skill match", job_trait_description(f[TRAIT_MATCH]),
        f[TRAIT_MATCH], f[TRAIT_MATCH] * weights[TRAIT_MATCH],
    ))
    return _sorted(out)


def explain_student(row: CandidateRow, weights: FeatureWeights) -> List[Explanation]:
    f = row.features
    return _sorted([
        Explanation(
            "Job type experience", student_experience_description(row.experience_count, row.job.type),
            f[JOB_TYPE_EXPERIENCE], f[JOB_TYPE_EXPERIENCE] * weights[JOB_TYPE_EXPERIENCE],
        ),
        Explanation(
            "Skill match", student_trait_description(f[TRAIT_MATCH]),
            f[TRAIT_MATCH], f[TRAIT_MATCH] * weights[TRAIT_MATCH],
        ),
        Explanation(
            "Student rating", student_rating_description(f[STUDENT_RATING]),
            f[STUDENT_RATING], f[STUDENT_RATING] * weights[STUDENT_RATING],
        ),
    ])
