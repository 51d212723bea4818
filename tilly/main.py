"""Tilly — till assistant console loop.

Reads a command per line, runs it against the sample shop, and prints the
response. Toasts and navigation events are printed as they happen.

Usage:
    python -m tilly
"""

import asyncio
import time

from tilly.commands.aliases import AliasStore
from tilly.commands.router import Router
from tilly.store.memory import sample_services


def log(msg):
    print(msg, flush=True)


def _on_event(kind, data):
    if kind == "SHOW_TOAST":
        log(f"  [toast] {data.get('message')}")
    else:
        log(f"  [{kind.lower()}] {data}")


def main():
    log("Loading aliases...")
    t0 = time.time()
    aliases = AliasStore()
    log(f"  {len(aliases)} learned aliases ({time.time() - t0:.1f}s)")

    services = sample_services()
    services.events.subscribe(_on_event)
    router = Router(aliases, services)

    # Start Telegram bot (if token is configured)
    try:
        from tilly.telegram_bot import start_telegram
        start_telegram(router)
    except Exception as e:
        log(f"Telegram bot failed to start: {e}")

    log("Ready. Type a command, or 'quit' to exit.\n")

    while True:
        try:
            text = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            log("\nShutting down.")
            break
        if not text:
            continue
        if text.lower() in ("quit", "exit"):
            log("Goodbye!")
            break

        result = asyncio.run(router.dispatch(text, source="[console]"))
        tag = f" [{result.action_taken}]" if result.action_taken else ""
        log(f"{result.message}{tag}\n")


if __name__ == "__main__":
    main()
