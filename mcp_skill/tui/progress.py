from rich.console import Console
from rich.status import Status


class ProgressIndicator:
    """Spinner shown while a non-interactive phase runs.

    ``stop`` only hides the spinner; the work it decorates keeps running.
    """

    def __init__(self, console: Console | None = None, enabled: bool = True) -> None:
        self._console = console or Console(stderr=True)
        self._enabled = enabled and self._console.is_terminal
        self._status: Status | None = None

    def start(self, message: str) -> None:
        if not self._enabled:
            return
        if self._status is not None:
            self._status.update(message)
            return
        self._status = self._console.status(message, spinner="dots")
        self._status.start()

    def stop(self) -> None:
        if self._status is None:
            return
        self._status.stop()
        self._status = None

    def __enter__(self) -> "ProgressIndicator":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.stop()
