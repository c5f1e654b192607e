# jobmatch/store/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from jobmatch.core.records import Application, Company, Job, Student


@dataclass(frozen=True)
class Snapshot:
    """
    Snapshot (FROZEN)

    One consistent read of every collection. Key maps built from a
    snapshot are only valid for that snapshot.
    """
    students: List[Student]
    jobs: List[Job]
    companies: List[Company]
    applications: List[Application]

    def student_index(self) -> Dict[str, Student]:
        return {s.student_id: s for s in self.students}

    def job_index(self) -> Dict[str, Job]:
        return {j.job_id: j for j in self.jobs}

    def company_index(self) -> Dict[str, Company]:
        return {c.company_id: c for c in self.companies}


class DocumentStore(ABC):
    """
    Read-only document store used by the feature extractor and recommenders.
    """

    @abstractmethod
    def list_students(self) -> List[Student]:
        raise NotImplementedError

    @abstractmethod
    def list_jobs(self) -> List[Job]:
        raise NotImplementedError

    @abstractmethod
    def list_companies(self) -> List[Company]:
        raise NotImplementedError

    @abstractmethod
    def list_applications(self) -> List[Application]:
        raise NotImplementedError

    # ---------------------------------------------------------
    # filtered reads (default: scan)
    # ---------------------------------------------------------
    def get_student(self, student_id: str) -> Optional[Student]:
        return next((s for s in self.list_students() if s.student_id == student_id), None)

    def get_job(self, job_id: str) -> Optional[Job]:
        return next((j for j in self.list_jobs() if j.job_id == job_id), None)

    def applications_for_student(self, student_id: str) -> List[Application]:
        return [a for a in self.list_applications() if a.student_id == student_id]

    def applications_for_job(self, job_id: str) -> List[Application]:
        return [a for a in self.list_applications() if a.job_id == job_id]

    def jobs_with_max_pay(self, max_hourly_pay: float) -> List[Job]:
        return [j for j in self.list_jobs() if j.hourly_pay <= max_hourly_pay]

    def snapshot(self) -> Snapshot:
        return Snapshot(
            students=self.list_students(),
            jobs=self.list_jobs(),
            companies=self.list_companies(),
            applications=self.list_applications(),
        )
