from typing import Callable, List, Optional, Protocol


class Notifier(Protocol):
    def notify(self, title: str, description: str, destructive: bool = False) -> None: ...


class Navigator(Protocol):
    def navigate(self, path: str) -> None: ...


class RecordingNavigator:
    def __init__(self, location: str = "/"):
        self.location = location
        self.history: List[str] = []

    def navigate(self, path: str) -> None:
        self.history.append(path)
        self.location = path


class FormModal:
    """Open state of the add-recipe dialog.

    Owned by whoever renders both the trigger and the dialog and handed
    down to them explicitly.
    """

    def __init__(self, on_change: Optional[Callable[[bool], None]] = None):
        self.open = False
        self._on_change = on_change

    def request_open(self) -> None:
        self._set(True)

    def request_close(self) -> None:
        self._set(False)

    def _set(self, value: bool) -> None:
        if self.open == value:
            return
        self.open = value
        if self._on_change is not None:
            self._on_change(value)
