"""Minimal Emitter example covering priorities, once and captured errors."""

from __future__ import annotations

from good_emitter import Emitter, TypedEvent

user_login: TypedEvent[[str], str | None] = TypedEvent("user:login")

emitter = Emitter()


def audit(username: str) -> str:
    return f"audit:{username}"


def greet(username: str) -> str:
    return f"Hello, {username}!"


def flaky(username: str) -> None:
    raise RuntimeError(f"could not notify {username}")


def main() -> None:
    emitter.subscribe(user_login, greet)
    emitter.subscribe(user_login, audit, priority=100)
    emitter.subscribe(user_login, flaky, priority=-10)
    emitter.once(user_login, lambda username: f"first login: {username}")

    for result in emitter.emit(user_login, "Ada"):
        if isinstance(result, Exception):
            print(f"listener failed: {result}")
        else:
            print(result)

    # The once-listener is gone on the second emit
    print(emitter.emit(user_login, "Grace"))


if __name__ == "__main__":
    main()
