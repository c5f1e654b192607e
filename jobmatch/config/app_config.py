#!filepath: jobmatch/config/app_config.py
import yaml
from pydantic import BaseModel, Field
from dotenv import load_dotenv
import os

from .log_config import LogConfig
from .store_config import StoreConfig
from .registry_config import RegistryConfig
from .training_config import TrainingConfig
from .recommend_config import RecommendConfig


def project_root() -> str:
    """
    jobmatch/config/app_config.py → jobmatch/config → jobmatch → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    training: TrainingConfig = Field(default_factory=TrainingConfig)
    recommend: RecommendConfig = Field(default_factory=RecommendConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 <project_root>/jobmatch/config/base.yml
        - 不依赖当前工作目录
        """
        root = project_root()

        # 1) .env first, so overrides below can see it
        load_dotenv(os.path.join(root, ".env"))

        # 2) config file
        if path is None:
            path = os.path.join(root, "jobmatch/config/base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 3) env overrides
        tracking_uri = os.getenv("MLFLOW_TRACKING_URI")
        if tracking_uri:
            raw.setdefault("registry", {})["tracking_uri"] = tracking_uri

        snapshot_dir = os.getenv("JOBMATCH_SNAPSHOT_DIR")
        if snapshot_dir:
            raw.setdefault("store", {})["snapshot_dir"] = snapshot_dir

        return cls(**raw)
