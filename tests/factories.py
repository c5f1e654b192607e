# tests/factories.py
from __future__ import annotations

from datetime import date, timedelta

from jobmatch.core.records import Application, Company, Job, Student
from jobmatch.store.memory import InMemoryDocumentStore

TODAY = date(2025, 6, 1)


def oid(n: int) -> str:
    """24-hex document id."""
    return f"{n:024x}"


def make_student(n: int, *, history=None, traits=None, thumbs=None) -> Student:
    return Student.model_validate({
        "studentId": oid(n),
        "firstName": f"S{n}",
        "lastName": "Test",
        "traits": traits or [],
        "jobTypesHistory": history or [],
        "thumbsReceived": thumbs,
    })


def make_job(n: int, *, company: int = 900, job_type: str = "gastro", pay: float = 10.0,
             start: date | None = None, traits=None, place: str = "Wien") -> Job:
    return Job.model_validate({
        "jobId": oid(n),
        "companyId": oid(company),
        "title": f"Job {n}",
        "type": job_type,
        "hourlyPay": pay,
        "startDate": (start or TODAY + timedelta(days=7)).isoformat(),
        "placeOfWork": place,
        "requiredTraits": traits or [],
    })


def make_application(n: int, student: int, job: int, status: str) -> Application:
    return Application.model_validate({
        "applicationId": oid(n),
        "studentId": oid(student),
        "jobId": oid(job),
        "status": status,
    })


def history_store() -> InMemoryDocumentStore:
    """
    6 students x 4 past jobs, 24 finished/expired applications.

    Students 1-3 are experienced and reliable (hired), 4-6 are not
    (expired), so both classes are well represented.
    """
    students = []
    for s in range(1, 7):
        good = s <= 3
        students.append(make_student(
            s,
            history=[{"type": "gastro", "count": 4 if good else 0}],
            traits=[{"name": "friendly", "positive": 5 if good else 0, "negative": 0 if good else 3}],
            thumbs={"up": 9, "down": 1} if good else {"up": 1, "down": 4},
        ))

    past = TODAY - timedelta(days=30)
    jobs = [
        make_job(100 + j, job_type="gastro", pay=8.0 + j, start=past, traits=["friendly"])
        for j in range(4)
    ]
    # open jobs for request-time recommendations
    jobs += [
        make_job(200, job_type="gastro", pay=14.0, traits=["friendly"]),
        make_job(201, job_type="office", pay=9.0, traits=["tidy"]),
        make_job(202, job_type="gastro", pay=12.0, start=TODAY - timedelta(days=1)),
    ]

    companies = [Company.model_validate({
        "companyId": oid(900), "name": "Cafe Central", "thumbsReceived": {"up": 8, "down": 2},
    })]

    applications = []
    n = 1000
    for s in range(1, 7):
        for j in range(4):
            applications.append(make_application(n, s, 100 + j, "hired" if s <= 3 else "expired"))
            n += 1

    return InMemoryDocumentStore(students, jobs, companies, applications)



def pay_store(n_jobs: int = 30) -> InMemoryDocumentStore:
    """Jobs whose pay depends on type and place, a few above the training cap."""
    jobs = []
    for i in range(n_jobs):
        job_type = ("gastro", "office", "retail")[i % 3]
        place = ("Wien", "Graz")[i % 2]
        pay = {"gastro": 7.0, "office": 9.0, "retail": 8.0}[job_type] + (0.5 if place == "Wien" else 0.0)
        jobs.append(make_job(500 + i, job_type=job_type, place=place, pay=pay,
                             traits=["friendly"] if i % 4 == 0 else []))
    jobs.append(make_job(499, job_type="office", pay=25.0))
    return InMemoryDocumentStore(jobs=jobs)
