from abc import ABCMeta, abstractmethod
from pathlib import Path
from typing import Any, ClassVar, cast

from mcp_skill.apps.app_id import ClientId, client_label, parse_client
from mcp_skill.apps.common.interfaces.repositories import IClientConfigRepository
from mcp_skill.errors import SkillManagerError


class ClientRepositoryRegistryMeta(ABCMeta):
    _registry: dict[ClientId, type["RegisteredClientConfigRepository"]] = {}

    def __new__(
        mcls,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ):
        cls = super().__new__(mcls, name, bases, namespace, **kwargs)
        client_id = getattr(cls, "CLIENT_ID", None)
        is_abstract = bool(getattr(cls, "__abstractmethods__", False))
        if client_id is not None and not is_abstract:
            mcls._registry[client_id] = cast(
                type["RegisteredClientConfigRepository"], cls
            )
        return cls


class RegisteredClientConfigRepository(
    IClientConfigRepository, metaclass=ClientRepositoryRegistryMeta
):
    CLIENT_ID: ClassVar[ClientId | None] = None

    def __init__(self, home: Path | None = None, cwd: Path | None = None) -> None:
        self._home = home or Path.home()
        self._cwd = cwd or Path.cwd()

    @property
    def home(self) -> Path:
        return self._home

    @property
    def cwd(self) -> Path:
        return self._cwd

    @property
    def client_id(self) -> ClientId:
        if self.CLIENT_ID is None:
            raise NotImplementedError
        return self.CLIENT_ID

    @property
    def client_label(self) -> str:
        return client_label(self.client_id)

    @classmethod
    @abstractmethod
    def create_default(
        cls, home: Path | None = None, cwd: Path | None = None
    ) -> "RegisteredClientConfigRepository":
        raise NotImplementedError


def list_registered_clients() -> list[ClientId]:
    _load_registered_modules()
    return sorted(ClientRepositoryRegistryMeta._registry.keys(), key=lambda item: item.value)


def create_client_repository(
    client: ClientId | str, home: Path | None = None, cwd: Path | None = None
) -> RegisteredClientConfigRepository:
    _load_registered_modules()
    client_id = parse_client(client)
    repository_class = ClientRepositoryRegistryMeta._registry.get(client_id)
    if repository_class is None:
        raise SkillManagerError(f"{client_id.value} does not support MCP servers")
    return repository_class.create_default(home=home, cwd=cwd)


def _load_registered_modules() -> None:
    from mcp_skill.apps.common.loader import load_client_repository_modules

    load_client_repository_modules()
