import logging
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class Revalidator:
    """Collects view paths touched by a mutation and announces them after commit.

    Publishing is a hint: a failing listener is logged and skipped.
    """

    def __init__(self, listeners: list[Listener] | None = None):
        self._listeners = list(listeners or [])
        self._pending: list[str] = []
        self.published: list[str] = []

    def revalidate_path(self, path: str) -> None:
        if path not in self._pending:
            self._pending.append(path)

    @property
    def pending(self) -> list[str]:
        return list(self._pending)

    def discard(self) -> None:
        self._pending.clear()

    def publish(self) -> None:
        paths, self._pending = self._pending, []
        for path in paths:
            for listener in list(self._listeners):
                try:
                    listener(path)
                except Exception:
                    logger.exception("Revalidation listener failed for %s", path)
            if path not in self.published:
                self.published.append(path)
        if paths:
            logger.debug("Revalidated %s", ", ".join(paths))
