"""Channels isolate listeners; delayed listeners run after emit returns."""

from __future__ import annotations

import asyncio

from good_emitter import Emitter, LoopScheduler, configure_library_logging


async def main() -> None:
    configure_library_logging()

    emitter = Emitter(scheduler=LoopScheduler())
    admin = emitter.channel("admin")
    fired: list[str] = []

    admin.subscribe("report", lambda name: fired.append(f"admin saw {name}"))
    emitter.subscribe("report", lambda name: fired.append(f"global saw {name}"))
    emitter.subscribe_with_delay("report", lambda name: fired.append(f"later: {name}"), 10)

    emitter.emit("report", "weekly")
    admin.emit("report", "audit")
    print(fired)

    await asyncio.sleep(0.05)
    print(fired)

    await emitter.async_close()


if __name__ == "__main__":
    asyncio.run(main())
