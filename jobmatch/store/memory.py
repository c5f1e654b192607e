# jobmatch/store/memory.py
from __future__ import annotations

import threading
from typing import Iterable, List

from jobmatch.core.records import Application, Company, Job, Student
from jobmatch.store.base import DocumentStore


class InMemoryDocumentStore(DocumentStore):
    """Process-local store. Lists are copied on read."""

    def __init__(
        self,
        students: Iterable[Student] = (),
        jobs: Iterable[Job] = (),
        companies: Iterable[Company] = (),
        applications: Iterable[Application] = (),
    ):
        self._lock = threading.Lock()
        self._students = list(students)
        self._jobs = list(jobs)
        self._companies = list(companies)
        self._applications = list(applications)

    def list_students(self) -> List[Student]:
        with self._lock:
            return list(self._students)

    def list_jobs(self) -> List[Job]:
        with self._lock:
            return list(self._jobs)

    def list_companies(self) -> List[Company]:
        with self._lock:
            return list(self._companies)

    def list_applications(self) -> List[Application]:
        with self._lock:
            return list(self._applications)

    def add(self, *records) -> None:
        with self._lock:
            for r in records:
                if isinstance(r, Student):
                    self._students.append(r)
                elif isinstance(r, Job):
                    self._jobs.append(r)
                elif isinstance(r, Company):
                    self._companies.append(r)
                elif isinstance(r, Application):
                    self._applications.append(r)
                else:
                    raise TypeError(f"unsupported record: {type(r).__name__}")
