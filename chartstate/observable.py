"""Change notification for stateful config objects."""

from typing import Callable, Dict, List

Listener = Callable[[str], None]

_MISSING = object()


class Observable:
    """
    Base class that notifies subscribers when a public attribute is reassigned.

    Listeners receive the dotted path of the changed attribute. Assigning a
    nested Observable forwards its notifications, e.g. "x_axis.scale_type".
    The first assignment of an attribute (construction) does not notify, and
    neither does assigning an equal value.
    """

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        listeners = self._listeners()
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _listeners(self) -> List[Listener]:
        listeners: List[Listener] = self.__dict__.setdefault("_observers", [])
        return listeners

    def _child_disposers(self) -> Dict[str, Callable[[], None]]:
        disposers: Dict[str, Callable[[], None]] = self.__dict__.setdefault(
            "_children", {}
        )
        return disposers

    def _notify(self, path: str) -> None:
        for listener in list(self._listeners()):
            listener(path)

    def _forward(self, name: str, child: "Observable") -> None:
        disposers = self._child_disposers()
        dispose = disposers.pop(name, None)
        if dispose:
            dispose()
        disposers[name] = child.subscribe(
            lambda path: self._notify(f"{name}.{path}")
        )

    def __setattr__(self, name: str, value: object) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return

        old = self.__dict__.get(name, _MISSING)
        object.__setattr__(self, name, value)
        if old is value:
            return

        if isinstance(value, Observable):
            self._forward(name, value)
        elif isinstance(old, Observable):
            dispose = self._child_disposers().pop(name, None)
            if dispose:
                dispose()

        if old is not _MISSING and old != value:
            self._notify(name)
