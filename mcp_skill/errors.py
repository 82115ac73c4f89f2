from pathlib import Path


class SkillManagerError(Exception):
    """Base user-facing application error."""


class SyncFileError(SkillManagerError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class InvalidJsonFormatError(SyncFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid JSON format ({detail})")


class InvalidConfigSchemaError(SyncFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid config schema ({detail})")


class SymlinkNotAllowedError(SyncFileError):
    def __init__(self, path: Path) -> None:
        super().__init__(path=path, message="Symlink not supported")


class ArtifactNotFoundError(SkillManagerError):
    def __init__(self, kind: str, token: str) -> None:
        self.kind = kind
        self.token = token
        super().__init__(f"{kind} not found in registry or local store: {token}")


class InvalidDefinitionError(SkillManagerError):
    """Malformed MCP server definition."""


class ConflictError(SkillManagerError):
    def __init__(self, kind: str, name: str, path: Path, message: str) -> None:
        self.kind = kind
        self.name = name
        self.path = path
        super().__init__(f"{kind} {message}: {name} ({path})")


class AlreadyExistsError(ConflictError):
    def __init__(self, kind: str, name: str, path: Path) -> None:
        super().__init__(kind=kind, name=name, path=path, message="already exists")


class NotInstalledError(ConflictError):
    def __init__(self, kind: str, name: str, path: Path) -> None:
        super().__init__(kind=kind, name=name, path=path, message="not found")


class UnsupportedScopeError(SkillManagerError):
    def __init__(self, client: str, scope: str, detail: str = "") -> None:
        self.client = client
        self.scope = scope
        message = f"{client} does not support {scope}-scoped MCP servers"
        if detail:
            message = f"{message}; {detail}"
        super().__init__(message)


class UnknownClientError(SkillManagerError):
    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Unknown client: {value}")


class ExternalCommandError(SkillManagerError):
    def __init__(self, command: str, output: str, message: str = "command failed") -> None:
        self.command = command
        self.output = output
        detail = output.strip() or "no output"
        super().__init__(f"{message} ({command}): {detail}")


class MissingRequirementsError(SkillManagerError):
    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"missing requirements: {', '.join(missing)}")


class RegistryFetchError(SkillManagerError):
    def __init__(self, url: str, detail: str) -> None:
        self.url = url
        self.detail = detail
        super().__init__(f"registry fetch failed: {url} ({detail})")


class RegistryUnavailableError(SkillManagerError):
    """No usable local copy of the registry indexes exists."""


class InputAbortedError(SkillManagerError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"input aborted before a value was given: {name}")
