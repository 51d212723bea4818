"""Small talk and help answers for utterances that aren't store commands.

Handles:
    "hello", "good morning"       → time-of-day greeting
    "thank you", "great"          → rotating you're-welcome
    "who are you", "tell a joke"
    "how do I bill", "printer not working", "gst"

Lookup runs in two stages. First, an exact keyword with word boundaries,
only for short queries so a long unrelated sentence that happens to contain
"hi" doesn't get a greeting. Then a fuzzy comparison of the whole query
against every topic and keyword, accepted under a distance cutoff.

Responses are either plain text or a callable run on every hit.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from difflib import SequenceMatcher
from typing import Callable, Sequence, Union

# Stage 1 only applies to queries shorter than this many words
MAX_KEYWORD_WORDS = 6
# Stage 2 accepts a hit when 1 - similarity is below this
MAX_DISTANCE = 0.5


@dataclass(frozen=True)
class Entry:
    topics: Sequence[str]
    keywords: Sequence[str]
    response: Union[str, Callable[[], str]]


def _time_of_day():
    hour = datetime.now().hour
    if hour < 12:
        return "Morning"
    elif hour < 17:
        return "Afternoon"
    else:
        return "Evening"


def _greet():
    return (f"👋 **Good {_time_of_day()}!**\n"
            "I'm ready to help. Try \"Add 2 milk\" or \"Show profit today\".")


class _Rotating:
    """Cycles through a list of replies, one per call."""

    def __init__(self, replies, prefix=""):
        self.replies = list(replies)
        self.prefix = prefix
        self._idx = 0

    def __call__(self):
        reply = self.replies[self._idx % len(self.replies)]
        self._idx += 1
        return self.prefix + reply


def default_entries():
    return [
        # --- Greetings & personality ---
        Entry(["Hello", "Hi", "Hey", "Greetings"],
              ["hello", "hi", "hey", "greetings", "yo", "sup",
               "good morning", "good afternoon", "good evening"],
              _greet),
        Entry(["How are you", "Status"],
              ["how are you", "how is it going", "doing"],
              "⚡ **Systems Operational.**\nDatabase: Connected\nSync: Active\nMood: Ambitious"),
        Entry(["Positive Feedback", "Compliment"],
              ["great", "awesome", "good", "nice", "cool", "thanks", "thank",
               "amazing", "excellent", "perfect"],
              _Rotating([
                  "😊 **Glad I could help!** Let me know if you need anything else.",
                  "🚀 **Awesome!** I'm here to keep things running smoothly.",
                  "🙌 **Great to hear!** Making your store smarter, one command at a time.",
                  "🤖 **You're welcome!** Just doing my job.",
              ])),
        Entry(["Who are you", "Identity"],
              ["who", "you", "name", "bot", "identity", "created"],
              "🤖 **I am Tilly.**\nI run the till by voice or text. "
              "I don't sleep, I don't take breaks, and I love data."),
        Entry(["Joke", "Fun"],
              ["joke", "funny", "laugh"],
              _Rotating([
                  "Why did the database break up with the server? She found someone with more cache.",
                  "Reviewing sales data... 404 Profit Not Found. Just kidding! 🤑",
                  "I would tell you a UDP joke, but you might not get it.",
              ], prefix="😂 **Here's one:**\n")),

        # --- Core features & help ---
        Entry(["Billing Help", "How to bill"],
              ["bill", "invoice", "sale", "sell", "checkout"],
              "🧾 **Billing Guide:**\n1. Scan product or press `F2` to search.\n"
              "2. Adjust qty with `+` / `-` keys.\n3. Press `F12` to Checkout.\n\n"
              "*Shortcut: Say 'Add 2 Milk' to skip steps.*"),
        Entry(["Search Product", "Find Item"],
              ["search", "find", "lookup", "price", "cost"],
              "🔍 **Product Search:**\nPress `F2` to open the global search bar. "
              "You can search by Name, Barcode, or a learned alias."),
        Entry(["Return Policy", "Refunds"],
              ["return", "refund", "exchange", "policy"],
              "🔄 **Return Policy:**\nItems can be returned within 7 days with the original bill. "
              "Processing a return? Go to **Sales History** > **Select Bill** > **Return Items**."),

        # --- Troubleshooting ---
        Entry(["Printer Issue", "Print fail"],
              ["print", "printer", "paper", "jam", "receipt"],
              "🖨️ **Printer Troubleshooting:**\n1. Check if printer is ON and connected.\n"
              "2. Verify paper roll is not empty.\n3. Say \"Test printer\" or go to "
              "**Settings > Hardware**."),
        Entry(["Scanner Issue"],
              ["scan", "scanner", "barcode", "reader"],
              "🔫 **Scanner Fix:**\nEnsure the scanner USB is plugged in tightly. If it beeps "
              "but doesn't enter text, click on the search box to focus it."),
        Entry(["Login Failed", "Password reset"],
              ["login", "password", "access", "user"],
              "🔐 **Access Control:**\nIf you forgot your PIN, please contact the Store Administrator."),

        # --- Reports & analytics ---
        Entry(["Profit", "Margin"],
              ["profit", "margin", "earn", "revenue"],
              "💰 **Profitability:**\nI track your purchase vs sales price. "
              "Ask *\"Show profit today\"* to see your net earnings instantly."),
        Entry(["Tax/GST"],
              ["tax", "gst", "vat", "duty"],
              "🏛️ **Tax Management:**\nAll sales are recorded with GST. You can export a "
              "**GSTR-1** compatible report from the Reports page."),
    ]


class KnowledgeBase:
    def __init__(self, entries=None):
        self.entries = list(entries) if entries is not None else default_entries()
        self._keyword_res = [
            [re.compile(rf"\b{re.escape(k)}\b", re.IGNORECASE) for k in e.keywords]
            for e in self.entries
        ]

    def ask(self, query):
        """Return an answer for query, or None if nothing fits."""
        q = " ".join(query.lower().split()).rstrip("?!.,")
        if not q:
            return None

        # 1. Direct keyword check, short queries only
        if len(q.split()) < MAX_KEYWORD_WORDS:
            for entry, regexes in zip(self.entries, self._keyword_res):
                if any(rx.search(q) for rx in regexes):
                    return _render(entry.response)

        # 2. Fuzzy comparison against topics and keywords
        best_entry = None
        best_distance = 1.0
        for entry in self.entries:
            for term in list(entry.topics) + list(entry.keywords):
                distance = 1.0 - SequenceMatcher(None, q, term.lower()).ratio()
                if distance < best_distance:
                    best_entry, best_distance = entry, distance
        if best_entry is not None and best_distance < MAX_DISTANCE:
            return _render(best_entry.response)

        return None


def _render(response):
    if callable(response):
        return response()
    return response
