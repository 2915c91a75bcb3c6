import logging
from typing import Iterable, List

log = logging.getLogger(__name__)


class ListFieldController:
    """Owns one repeated form field (ingredients or steps).

    The list never drops below one element, so rows can always be
    addressed by position 0..len-1.
    """

    def __init__(self, items: Iterable[str] = ("",), label: str = "items"):
        self._items: List[str] = list(items) or [""]
        self.label = label

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> str:
        return self._items[index]

    @property
    def items(self) -> List[str]:
        return list(self._items)

    @property
    def can_remove(self) -> bool:
        return len(self._items) > 1

    def append(self, value: str = "") -> int:
        self._items.append(value)
        return len(self._items) - 1

    def remove_at(self, index: int) -> bool:
        self._check_index(index)
        if not self.can_remove:
            log.debug("Refusing to remove the last of %s", self.label)
            return False
        del self._items[index]
        return True

    def update_at(self, index: int, value: str) -> None:
        self._check_index(index)
        self._items[index] = value

    def _check_index(self, index: int) -> None:
        # negative indices would silently address from the end
        if not 0 <= index < len(self._items):
            raise IndexError(f"{self.label} index {index} out of range")
