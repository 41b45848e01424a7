import logging

logger = logging.getLogger(__name__)


class Event:
    """Synchronous multi-listener event; a failing listener never stops the others"""

    def __init__(self, name: str = "event"):
        self.name = name
        self._listeners = []

    def add_listener(self, listener):
        if not callable(listener):
            raise ValueError("Listener must be callable")
        self._listeners.append(listener)

    def remove_listener(self, listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, *args, **kwargs):
        for listener in list(self._listeners):
            try:
                listener(*args, **kwargs)
            except Exception:
                logger.exception("Error in %s listener", self.name)

    def __len__(self):
        return len(self._listeners)
