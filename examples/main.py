#!/usr/bin/env python3
"""
Walkthrough of schemalite features
"""

import asyncio
import datetime
import logging

from schemalite import Schema


def build_schema(store):
    """Schema whose hooks keep models in a plain dict."""

    def save(model, done):
        store[model.username] = model.to_json()
        done(None)

    async def remove(model, done):
        await asyncio.sleep(0)
        store.pop(model.username, None)

    def count(query, done):
        done(None, len(store))

    return Schema(
        fields={
            "created_at": {
                "type": "date",
                "immutable": True,
                "default": datetime.datetime.now,
            }
        },
        save=save,
        remove=remove,
        count=count,
    )


def demo_validation(User):
    print("=== Validation ===")

    def long_enough(username):
        return len(username) >= 3 or "username too short"

    User.add_field("nickname", {"validate": long_enough})
    user = User({"username": "alice", "nickname": "al", "age": "old"})
    print(f"errors: {user.get_errors()}")
    print(f"save while invalid: {user.save()}")
    user.clear_errors()
    print("✓ Validation works\n")


def demo_events(User):
    print("=== Events ===")
    User.on("change", lambda model, name, value: print(f"  User.{name} -> {value!r}"))
    user = User({"username": "bob"})
    user.on("save", lambda error: print(f"  saved (error={error})"))
    user.age = 42
    user.save()
    print("✓ Events work\n")


async def demo_async(User):
    print("=== Async hooks ===")
    user = User({"username": "carol"})
    await user.save_async()
    print(f"  stored: {User.count(None).result()} users")
    await user.remove_async()
    print(f"  after remove: {User.count(None).result()} users")
    print("✓ Async hooks work\n")


def main():
    logging.basicConfig(level=logging.INFO)
    store = {}
    schema = build_schema(store)

    User = schema(
        "User",
        {
            "username": {"type": "string", "required": True},
            "age": "int",
            "roles": {"type": "array", "default": ["user"]},
        },
        {"extend": {"is_admin": lambda model: "admin" in model.roles}},
    )

    demo_validation(User)
    demo_events(User)
    asyncio.run(demo_async(User))

    print(User({"username": "dave"}).to_string(pretty=True))


if __name__ == "__main__":
    main()
