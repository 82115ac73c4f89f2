from abc import ABC, abstractmethod
from typing import Any

from mcp_skill.models import Definition


class IClientMCPMapper(ABC):
    @abstractmethod
    def to_client(self, definition: Definition) -> Any:
        raise NotImplementedError

    @abstractmethod
    def detect_transport(self, payload: Any) -> str:
        raise NotImplementedError
