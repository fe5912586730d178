"""Tests for instance and model-level events."""

import pytest

from schemalite import EventEmitter, model_factory


class TestEventEmitter:
    """Test the emitter itself."""

    def test_on_and_emit(self):
        """Test listeners run in registration order with the emitted args."""
        emitter = EventEmitter()
        calls = []
        emitter.on("ping", lambda *args: calls.append(("a", args)))
        emitter.on("ping", lambda *args: calls.append(("b", args)))

        assert emitter.emit("ping", 1, 2) is True
        assert emitter.emit("pong") is False
        assert calls == [("a", (1, 2)), ("b", (1, 2))]

    def test_once(self):
        """Test that once listeners run a single time."""
        emitter = EventEmitter()
        calls = []
        emitter.once("ping", calls.append)
        emitter.emit("ping", 1)
        emitter.emit("ping", 2)
        assert calls == [1]

    def test_off(self):
        """Test removing one listener and all listeners."""
        emitter = EventEmitter()
        calls = []
        emitter.on("ping", calls.append)
        once_listener = emitter.once("ping", print)
        emitter.off("ping", print)
        assert emitter.listeners("ping") == [calls.append]
        assert once_listener not in emitter.listeners("ping")

        emitter.on("ping", calls.append)
        emitter.off("ping")
        assert emitter.emit("ping", 1) is False
        assert calls == []

    def test_listener_must_be_callable(self):
        """Test that non-callable listeners are rejected."""
        with pytest.raises(TypeError):
            EventEmitter().on("ping", "nope")

    def test_listener_errors_propagate(self):
        """Test that listener exceptions reach the emitter."""
        emitter = EventEmitter()

        def boom(*args):
            raise RuntimeError("boom")

        emitter.on("ping", boom)
        with pytest.raises(RuntimeError, match="boom"):
            emitter.emit("ping")


class TestModelEvents:
    """Test lifecycle and change events on models."""

    def test_class_and_instance_emitters_are_separate(self):
        """Test that User.on and user.on reach different emitters."""
        User = model_factory("User", {"name": "string"})
        user = User()
        User.on("custom", print)
        assert User.listeners("custom") == [print]
        assert user.listeners("custom") == []

    def test_emitters_are_per_model_type(self):
        """Test that two model types do not share listeners."""
        User = model_factory("User", {})
        Account = model_factory("Account", {})
        created = []
        User.on("create", created.append)
        Account()
        user = User()
        assert created == [user]

    def test_create_event(self):
        """Test that create fires after data and defaults are applied."""
        Ooby = model_factory(
            "Ooby", {"name": "string", "role": {"type": "string", "default": "user"}}
        )
        seen = []
        Ooby.on("create", lambda model: seen.append(model.to_json()))
        Ooby({"name": "Foo"})
        assert seen == [{"name": "Foo", "role": "user"}]

    def test_change_event_order(self):
        """Test the four change notifications for a single write."""
        Ooby = model_factory("Ooby", {"name": "string"})
        ooby = Ooby()
        calls = []

        Ooby.on("change", lambda model, name, value: calls.append(("type change", model, name, value)))
        Ooby.on("change:name", lambda model, value: calls.append(("type change:name", model, value)))
        ooby.on("change", lambda name, value: calls.append(("change", name, value)))
        ooby.on("change:name", lambda value: calls.append(("change:name", value)))

        ooby.name = "X"

        assert calls == [
            ("change:name", "X"),
            ("type change:name", ooby, "X"),
            ("change", "name", "X"),
            ("type change", ooby, "name", "X"),
        ]

    def test_no_change_event_for_invalid_write(self):
        """Test that rejected values emit nothing."""
        Ooby = model_factory("Ooby", {"total": "int"})
        ooby = Ooby()
        calls = []
        Ooby.on("change", lambda *args: calls.append(args))
        ooby.total = "many"
        assert calls == []

    def test_change_events_during_construction(self):
        """Test that initial data and defaults emit model-level changes."""
        Ooby = model_factory(
            "Ooby", {"name": "string", "role": {"type": "string", "default": "user"}}
        )
        calls = []
        Ooby.on("change", lambda model, name, value: calls.append((name, value)))
        Ooby({"name": "Foo"})
        assert calls == [("name", "Foo"), ("role", "user")]

    def test_lifecycle_events(self):
        """Test save and remove events on the model type and the instance."""
        Ooby = model_factory("Ooby", {"name": "string", "email": "string"})
        data = {"name": "Foo", "email": "foo@bar.com"}
        events = []

        for event in ("beforeSave", "save", "beforeRemove", "remove"):
            Ooby.on(event, lambda model, *args, event=event: events.append(("type", event, model)))

        ooby = Ooby(data)

        for event in ("beforeSave", "save", "beforeRemove", "remove"):
            ooby.on(event, lambda *args, event=event: events.append(("instance", event, args)))

        ooby.save()
        ooby.remove()

        assert events == [
            ("type", "beforeSave", ooby),
            ("instance", "beforeSave", ()),
            ("type", "save", ooby),
            ("instance", "save", (None,)),
            ("type", "beforeRemove", ooby),
            ("instance", "beforeRemove", ()),
            ("type", "remove", ooby),
            ("instance", "remove", (None,)),
        ]
