import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[[str, int], None]


class ChangeNotifier:
    """Tells whoever renders the data that a resource changed.

    Listeners run after the mutation is committed; a failing listener is
    logged and does not affect the caller.
    """

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def changed(self, resource: str, resource_id: int) -> None:
        for listener in list(self._listeners):
            try:
                listener(resource, resource_id)
            except Exception:
                logger.exception("Change listener failed for %s %s", resource, resource_id)


def log_change(resource: str, resource_id: int) -> None:
    logger.debug("Changed: %s %s", resource, resource_id)


notifier = ChangeNotifier()
notifier.subscribe(log_change)


def get_notifier() -> ChangeNotifier:
    return notifier
