#!filepath: jobmatch/config/registry_config.py
from typing import Literal, Optional

from pydantic import BaseModel


class RegistryConfig(BaseModel):
    backend: Literal["local", "mlflow"] = "local"
    tracking_uri: Optional[str] = None
    # artifact root for the local backend
    root_dir: str = "registry"

    # remote call retry (mlflow backend only)
    max_attempts: int = 3
    retry_delay: float = 1.0
