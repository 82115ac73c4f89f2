from abc import ABC, abstractmethod
from pathlib import Path

from mcp_skill.models import Definition, Scope, ServerEntry


class IClientConfigRepository(ABC):
    @property
    @abstractmethod
    def home(self) -> Path:
        raise NotImplementedError

    @property
    @abstractmethod
    def cwd(self) -> Path:
        raise NotImplementedError

    @abstractmethod
    def config_path(self, scope: Scope) -> Path:
        raise NotImplementedError

    @abstractmethod
    def install(self, definition: Definition, scope: Scope, force: bool = False) -> Path:
        raise NotImplementedError

    @abstractmethod
    def uninstall(self, name: str, scope: Scope, force: bool = False) -> Path:
        raise NotImplementedError

    @abstractmethod
    def list_servers(self, scope: Scope) -> list[ServerEntry]:
        raise NotImplementedError
