# jobmatch/core/records.py
"""
Document-store records.

Field names are snake_case in Python and camelCase on the wire
(``hourlyPay``, ``requiredTraits``, ...). Both spellings are accepted
when loading.
"""
from __future__ import annotations

import re
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from jobmatch.utils.errors import UserInputError

_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{24}$")

# application statuses that count as a successful historical outcome
POSITIVE_STATUSES = frozenset({"hired", "ratedByCompany", "ratedByStudent", "finished", "rated"})
NEGATIVE_STATUSES = frozenset({"expired"})


def parse_object_id(value: str, name: str = "id") -> str:
    """Validate a 24-hex document identifier and return it lower-cased."""
    if not isinstance(value, str) or not _OBJECT_ID.match(value):
        raise UserInputError(f"Invalid {name}: {value!r}")
    return value.lower()


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Thumbs(_Record):
    up: int = 0
    down: int = 0

    @property
    def total(self) -> int:
        return self.up + self.down


class Trait(_Record):
    name: str
    positive: int = 0
    negative: int = 0


class JobTypeHistory(_Record):
    type: str
    count: int = 0


class Student(_Record):
    student_id: str
    first_name: str = ""
    last_name: str = ""
    traits: List[Trait] = Field(default_factory=list)
    job_types_history: List[JobTypeHistory] = Field(default_factory=list)
    thumbs_received: Optional[Thumbs] = None

    def experience(self, job_type: str) -> int:
        for h in self.job_types_history:
            if h.type == job_type:
                return h.count
        return 0

    def trait(self, name: str) -> Optional[Trait]:
        for t in self.traits:
            if t.name == name:
                return t
        return None


class Company(_Record):
    company_id: str
    name: str = ""
    thumbs_received: Optional[Thumbs] = None


class Job(_Record):
    job_id: str
    company_id: str
    title: str = ""
    type: str = ""
    hourly_pay: float = 0.0
    start_date: date
    end_date: Optional[date] = None
    place_of_work: str = ""
    required_traits: List[str] = Field(default_factory=list)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _date_only(cls, v):
        # store exports timestamps like "2025-03-01T00:00:00Z"
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


class Application(_Record):
    application_id: str
    student_id: str
    job_id: str
    status: str

    @property
    def is_positive(self) -> bool:
        return self.status in POSITIVE_STATUSES

    @property
    def is_negative(self) -> bool:
        return self.status in NEGATIVE_STATUSES


class PayPredictionInput(_Record):
    type: str = ""
    place_of_work: str = ""
    required_traits: List[str] = Field(default_factory=list)
