#!filepath: jobmatch/utils/path.py
from pathlib import Path
from typing import Optional

from jobmatch import logs


class PathManager:
    """
    Runtime directory layout::

        <root>/
         ├── data/            document-store snapshot (json)
         ├── models/          run-scoped model artifacts
         │     └── <model_name>/<run_id>/
         └── registry/        local model registry artifact root

    root defaults to the project directory and can be pinned with set_root().
    """

    _root: Optional[Path] = None

    @classmethod
    def detect_root(cls) -> Path:
        """
        jobmatch/utils/path.py → parents[2] = project root
        """
        current = Path(__file__).resolve()
        root = current.parents[2]
        logs.debug(f"[PathManager] detect_root = {root}")
        return root

    @classmethod
    def root(cls) -> Path:
        if cls._root is None:
            cls._root = cls.detect_root()
        return cls._root

    @classmethod
    def set_root(cls, new_root: Path | str | None):
        if new_root is None:
            cls._root = None
        else:
            cls._root = Path(new_root).resolve()
        logs.debug(f"[PathManager] set_root = {cls._root}")

    @classmethod
    def resolve(cls, p: Path | str) -> Path:
        """Relative paths are anchored at root()."""
        p = Path(p)
        return p if p.is_absolute() else cls.root() / p

    # ---------------------------------------------------------
    # Top-level dirs
    # ---------------------------------------------------------
    @classmethod
    def data_dir(cls) -> Path:
        return cls.root() / "data"

    @classmethod
    def model_dir(cls) -> Path:
        return cls.root() / "models"

    @classmethod
    def registry_dir(cls) -> Path:
        return cls.root() / "registry"

    # ---------------------------------------------------------
    # models/
    # ---------------------------------------------------------
    @classmethod
    def model_run_dir(cls, model_name: str, run_id: str, base: Path | None = None) -> Path:
        return (base or cls.model_dir()) / model_name / run_id

    @classmethod
    def model_download_dir(cls, model_name: str, version: str, base: Path | None = None) -> Path:
        return (base or cls.model_dir()) / "downloads" / model_name / f"v{version}"
