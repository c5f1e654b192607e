#!filepath: jobmatch/config/store_config.py
from pydantic import BaseModel


class StoreConfig(BaseModel):
    # directory holding students.json / jobs.json / companies.json / applications.json
    snapshot_dir: str = "data"
