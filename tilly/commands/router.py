"""Command router: classifies an utterance, dispatches it, or falls back to small talk.

Each handler module provides:
    HANDLERS = {CommandClass: async handler(cmd, ctx) -> CommandResult}

The Dispatcher is the ctx handed to every handler; it carries the services,
the alias store and the product resolver.
"""

import os
from datetime import datetime

from tilly.commands import ALL_HANDLERS
from tilly.commands.classifier import IntentClassifier
from tilly.commands.knowledge import KnowledgeBase
from tilly.commands.parse import CommandResult
from tilly.commands.resolver import ProductResolver

# Log file: lives next to the tilly package directory
_LOG_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "tilly.log")

NOT_UNDERSTOOD = "🤔 Sorry, I didn't understand that. Try \"Add 2 milk\" or \"Sales today\"."


class Dispatcher:
    """Runs one Command against its handler. Never raises."""

    def __init__(self, services, aliases, resolver=None, handlers=None):
        self.services = services
        self.aliases = aliases
        self.resolver = resolver or ProductResolver()
        self.handlers = dict(ALL_HANDLERS if handlers is None else handlers)

    def register(self, command_class, handler):
        self.handlers[command_class] = handler

    async def execute(self, cmd):
        handler = self.handlers.get(type(cmd))
        if handler is None:
            return CommandResult(False, "unrecognized command")
        try:
            return await handler(cmd, self)
        except Exception as e:
            return CommandResult(False, f"Error: {e}")


class Router:
    """Utterance in, exactly one CommandResult out."""

    def __init__(self, aliases, services, knowledge=None, resolver=None, log_path=_LOG_PATH):
        self.classifier = IntentClassifier(aliases)
        self.dispatcher = Dispatcher(services, aliases, resolver)
        self.knowledge = knowledge or KnowledgeBase()
        self.log_path = log_path

    async def dispatch(self, text, source="[text]"):
        """Handle one utterance.

        Args:
            text: What the user typed or said.
            source: Source tag for logging, e.g. "[console]" or "[Telegram:Anu]".
        """
        pattern, cmd = self.classifier.classify(text)
        if cmd is not None:
            self._log_request(text, pattern.name, cmd.payload(), source)
            return await self.dispatcher.execute(cmd)

        answer = self.knowledge.ask(text)
        self._log_request(text, "knowledge" if answer else None, {}, source)
        if answer:
            return CommandResult(True, answer)
        return CommandResult(False, NOT_UNDERSTOOD)

    def _log_request(self, text, name, fields, source):
        """Append a compact 2-line entry to the log file."""
        if not self.log_path:
            return
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        if name is None:
            parse_line = "  -> none"
        else:
            parts = [name] + [f"{k}={v!r}" for k, v in fields.items()]
            parse_line = f"  -> {', '.join(parts)}"
        try:
            with open(self.log_path, "a") as f:
                f.write(f"{ts} {source}  {text}\n{parse_line}\n")
        except OSError:
            pass
