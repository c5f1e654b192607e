#!filepath: jobmatch/config/recommend_config.py
from pydantic import BaseModel, Field


class RecommendConfig(BaseModel):
    # hourly pay is divided by this ceiling and clamped to 1.0
    pay_ceiling: float = Field(default=20.0, gt=0)
    # job-type experience is capped at this count
    experience_cap: int = Field(default=5, ge=1)
