from .base import ModelRegistry, RegistryRun, RegisteredVersion
from .local import LocalModelRegistry

__all__ = ["ModelRegistry", "RegistryRun", "RegisteredVersion", "LocalModelRegistry"]
