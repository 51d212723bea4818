"""Learned vocabulary: "paal means milk", "learn chaya as tea".

Aliases map a word the cashier uses to the catalog term it stands for. The
map is a flat JSON object in data/aliases.json, loaded once when the store is
built and rewritten on every change.

Handles (via the classifier):
    "learn chaya as tea"
    "teach mettt to sugar"
    "set kadi as snacks"
"""

import json
import threading
from pathlib import Path

from tilly.commands.parse import CommandResult, LearnAlias

# Persistence file: data/aliases.json relative to project root
_DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data"
_ALIAS_PATH = _DATA_DIR / "aliases.json"


def _norm(word):
    return " ".join(str(word).split()).lower()


class AliasStore:
    """Case-insensitive alias → canonical term map with write-through persistence.

    Writers build a new dict and swap it in whole, so a concurrent resolve()
    sees either the old map or the new one, never a map mid-update. The lock
    only orders writers against each other.
    """

    def __init__(self, path=_ALIAS_PATH):
        self.path = Path(path) if path is not None else None
        self._aliases = {}
        self._lock = threading.Lock()
        self._load()

    def _load(self):
        """Load aliases from disk. Missing or unreadable files give an empty map."""
        if self.path is None or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return
        if not isinstance(data, dict):
            return
        self._aliases = {_norm(k): _norm(v) for k, v in data.items()
                         if isinstance(k, str) and isinstance(v, str) and k.strip()}

    def _save(self, aliases):
        """Write aliases to disk as JSON. Must be called with _lock held."""
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(aliases, indent=2, sort_keys=True, ensure_ascii=False) + "\n",
                       encoding="utf-8")
        tmp.replace(self.path)

    def resolve(self, word):
        """Return the canonical term for word, or word lowercased if unknown."""
        key = _norm(word)
        return self._aliases.get(key, key)

    def add(self, alias, target):
        alias, target = _norm(alias), _norm(target)
        if not alias or not target:
            raise ValueError("alias and target must both be non-empty")
        with self._lock:
            updated = dict(self._aliases)
            updated[alias] = target
            self._save(updated)
            self._aliases = updated

    def remove(self, alias):
        """Forget an alias. Removing one that isn't there does nothing."""
        key = _norm(alias)
        with self._lock:
            if key not in self._aliases:
                return
            updated = {k: v for k, v in self._aliases.items() if k != key}
            self._save(updated)
            self._aliases = updated

    def aliases(self):
        return dict(self._aliases)

    def __contains__(self, word):
        return _norm(word) in self._aliases

    def __len__(self):
        return len(self._aliases)


# --- Handler ---

async def handle_learn_alias(cmd, ctx):
    ctx.aliases.add(cmd.alias, cmd.target)
    return CommandResult(
        True,
        f"Got it! I've learned that \"{cmd.alias}\" means \"{cmd.target}\".",
        "LEARNED_ALIAS")


HANDLERS = {LearnAlias: handle_learn_alias}
