from typing import Any, Callable, Dict, List, Optional

Listener = Callable[..., Any]


class EventEmitter:
    """Minimal synchronous event emitter.

    Listeners run in registration order. Exceptions raised by a listener
    propagate to the code that emitted the event.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, listener: Listener) -> Listener:
        if not callable(listener):
            raise TypeError("listener must be callable.")
        self._listeners.setdefault(event, []).append(listener)
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        def wrapper(*args: Any) -> Any:
            self.off(event, wrapper)
            return listener(*args)

        wrapper.listener = listener  # type: ignore[attr-defined]
        return self.on(event, wrapper)

    def off(self, event: str, listener: Optional[Listener] = None) -> None:
        """Remove one listener, or every listener for event when none given."""
        if listener is None:
            self._listeners.pop(event, None)
            return
        listeners = self._listeners.get(event, [])
        for registered in listeners:
            if registered == listener or getattr(registered, "listener", None) == listener:
                listeners.remove(registered)
                break
        if not listeners:
            self._listeners.pop(event, None)

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener for event; return whether there were any."""
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            listener(*args)
        return bool(listeners)

    def listeners(self, event: str) -> List[Listener]:
        return list(self._listeners.get(event, ()))


class EmitterAccessor:
    """Expose an emitter method on both a model class and its instances.

    ``User.on`` reaches the class-level emitter while ``user.on`` reaches the
    instance's own emitter.
    """

    def __init__(self, method: str) -> None:
        self.method = method

    def __get__(self, instance: Any, owner: Any = None) -> Callable[..., Any]:
        if instance is None:
            emitter = owner._type_events
        else:
            emitter = instance._events
        return getattr(emitter, self.method)
