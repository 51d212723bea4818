"""Intent classifier: utterance → one Command, or None.

PATTERNS is an ordered tuple of (name, matcher, extractor) rules. The first
rule whose matcher fires decides the Command; later rules are never
consulted. Order is what keeps "add expense 250 for cleaning" from being read
as "add the product 'expense 250 for cleaning'": the specific rules (expense,
theme, navigation, hardware, price/stock assignment, bill and customer
lookup) sit above the broad ones, and the bare "add X" rule is last.

Matchers take the normalized text and return a dict of fields or None.
Extractors take (fields, text) and build the Command. Product and customer
names in the Command are then rewritten through the alias store, falling
back to a small built-in Manglish table.
"""

import re
from dataclasses import dataclass, fields as dc_fields, replace
from typing import Callable, Optional

from tilly.commands.parse import (
    AddExpense, AddItem, AnalyticsQuery, AutoClearance, BillLookup, CheckStock,
    ClearCart, CustomerLookup, DataModification, HardwareAction, InventoryQuery,
    LearnAlias, Navigate, RemoveItem, ReportQuery, SwitchTheme,
)
from tilly.commands.template import TemplatePattern

# Built-in Manglish / synonym table, consulted after the learned aliases
BUILTIN_ALIASES = {
    "paal": "milk",
    "panjasara": "sugar",
    "ari": "rice",
    "vellam": "water",
    "kadi": "snacks",
    "mittayi": "candy",
    "chaya": "tea",
    "kappi": "coffee",
}

# Command fields that name a product or customer and go through alias lookup
_REFERENCE_FIELDS = ("product_name", "customer_name")

_WORD_NUMS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
    "dozen": 12,
}


@dataclass(frozen=True)
class Pattern:
    name: str
    matcher: Callable[[str], Optional[dict]]
    extractor: Callable[[dict, str], object]


def normalize(text):
    """Trim, lowercase, collapse whitespace, drop trailing punctuation."""
    return " ".join(text.strip().lower().split()).rstrip("?!.,").strip()


def _number(s):
    """Parse a quantity/amount. Anything unparseable is None (unset)."""
    if s is None:
        return None
    s = s.strip()
    if s in _WORD_NUMS:
        return float(_WORD_NUMS[s])
    try:
        return float(s)
    except ValueError:
        return None


# --- Matcher builders ---

def _regex(pattern):
    """Matcher from a regex searched anywhere in the text; fields are its named groups."""
    rx = re.compile(pattern, re.IGNORECASE)

    def match(text):
        m = rx.search(text)
        if m is None:
            return None
        return {k: v.strip() for k, v in m.groupdict().items() if v is not None}

    match.pattern = pattern
    return match


def _first(*templates):
    """Matcher that tries several TemplatePatterns in order."""
    def match(text):
        for tmpl in templates:
            result = tmpl.match(text)
            if result is not None:
                return result
        return None

    match.templates = templates
    return match


# --- Extractors ---

def _expense(f, text):
    tail = f.get("tail", "")
    m = re.search(r"\d+(?:\.\d+)?", tail)
    amount = float(m.group(0)) if m else None
    rest = tail[:m.start()] + " " + tail[m.end():] if m else tail
    rest = re.sub(r"₹|\b(?:rupees|rs|inr)\b", " ", rest)
    rest = re.sub(r"\b(?:for|on|of)\b", " ", rest)
    reason = " ".join(rest.split())
    return AddExpense(amount=amount, reason=reason or "Miscellaneous")


def _theme(f, text):
    return SwitchTheme(theme="dark" if f["color"] in ("dark", "night") else "light")


_PAGES = [
    (("dashboard", "home"), "/", "Dashboard"),
    (("billing", "checkout"), "/billing", "Billing"),
    (("settings", "config", "configuration"), "/settings", "Settings"),
    (("customers", "clients"), "/customers", "Customers"),
    (("stocktake", "inventory"), "/stocktake", "Stocktake"),
    (("staff", "employees"), "/staff", "Staff Management"),
    (("reports",), "/reports", "Reports"),
    (("hardware",), "/hardware", "Hardware"),
]
_PAGE_WORDS = "|".join(w for words, _, _ in _PAGES for w in words)


def _navigate(f, text):
    for words, route, label in _PAGES:
        if f["page"] in words:
            return Navigate(route=route, label=label)
    return None


def _hardware(f, text):
    device = f["device"]
    if device in ("drawer", "till") or device.startswith("cash"):
        return HardwareAction(action="OPEN_DRAWER")
    if device == "printer":
        return HardwareAction(action="TEST_PRINTER")
    return HardwareAction(action="READ_SCALE")


def _data_modification(f, text):
    target = "stock" if f["field"] in ("stock", "quantity", "inventory") else "price"
    return DataModification(target=target, product_name=f["product"],
                            value=float(f["value"]))


def _learn_alias(f, text):
    return LearnAlias(alias=f["alias"], target=f["target"])


def _bill(f, text):
    return BillLookup(bill_id=f["bill_id"])


def _fixed(command):
    return lambda f, text: command


def _has(words, text):
    return re.search(rf"\b(?:{words})", text) is not None


def _analytics(f, text):
    if _has("predict|forecast|projection|target", text):
        return AnalyticsQuery(sub_type="PREDICT_SALES")
    if _has(r"trend|best\s+sell|top\s+sell|hot\b|popular", text):
        return AnalyticsQuery(sub_type="TRENDING_PRODUCTS")
    if _has("dead", text):
        return AnalyticsQuery(sub_type="DEAD_STOCK")
    if _has(r"not\s+selling|worst|least|slow", text):
        return AnalyticsQuery(sub_type="WORST_SELLERS")
    return AnalyticsQuery(sub_type="COMPARE_SALES", period="today")


def _clearance(f, text):
    m = re.search(r"(\d+)\s*(?:%|percent)?", text)
    percent = int(m.group(1)) if m else None
    if percent is not None and not 0 < percent < 100:
        percent = None
    return AutoClearance(discount_percent=percent)


def _customer(f, text):
    return CustomerLookup(customer_name=f["name"])


def _inventory(f, text):
    return InventoryQuery(query_type=" ".join(f["query"].split()))


_PERIOD_RE = re.compile(
    r"\b(today'?s?|yesterday|this\s+week|this\s+month|last\s+month|daily|weekly|monthly)\b")


def _report(f, text):
    if _has(r"profit\b", text):
        kind = "profit"
    elif _has(r"suppliers?\b", text):
        kind = "suppliers"
    else:
        kind = f["kind"]

    m = _PERIOD_RE.search(text)
    period = "today"
    if m:
        period = " ".join(m.group(1).split())
        if period.startswith("today"):
            period = "today"

    if _has(r"(?:pdf|download)\b", text):
        fmt = "pdf"
    elif _has(r"(?:csv|excel|spreadsheet)\b", text):
        fmt = "csv"
    elif _has(r"(?:give|send|generate|get)\b", text) and _has(r"(?:list|details|invoice)\b", text):
        fmt = "pdf"
    else:
        fmt = "text"
    return ReportQuery(report_type=kind, period=period, format=fmt)


def _check_stock(f, text):
    return CheckStock(product_name=f["product"])


def _remove(f, text):
    return RemoveItem(product_name=f["product"])


def _add_quantity(f, text):
    product = re.sub(r"^of\s+", "", f["product"])
    return AddItem(product_name=product, quantity=_number(f.get("qty")),
                   unit=f.get("unit"))


def _add(f, text):
    return AddItem(product_name=f["product"])


# --- The cascade (order is priority) ---

_CART = "[to|in|into] [the |][cart|bill|basket]"
_FROM_CART = "[from|off] [the |][cart|bill|basket]"
_ADD_VERBS = "[add|give|need|want|tharu|venam|edu]"
_REMOVE_VERBS = "[remove|delete|cancel|clear|kalayu|maatu]"
_QTY = r"\d+(?:\.\d+)?|" + "|".join(_WORD_NUMS)
_UNITS = r"kg|kgs|g|gm|gms|gram|grams|pcs|pc|nos|liter|litre|liters|litres|l|ml|packets?"

PATTERNS = (
    Pattern("expense",
            _regex(r"\b(?:add|log|record)\s+(?:an?\s+)?(?:expenses?|cost|spending|payout)\b(?P<tail>.*)"),
            _expense),
    Pattern("theme",
            _regex(r"\b(?P<color>white|light|day|dark|night)\s+(?:mode|theme)\b"),
            _theme),
    Pattern("navigate",
            _regex(rf"\b(?:go\s+to|open|show|view|navigate\s+to|launch)\s+(?:the\s+)?"
                   rf"(?P<page>{_PAGE_WORDS})(?:\s+(?:page|screen|tab))?$"),
            _navigate),
    Pattern("hardware",
            _regex(r"\b(?:open|test|read|check)\s+(?:the\s+)?"
                   r"(?P<device>drawer|printer|scale|weight|cash\s+box|till)\b"),
            _hardware),
    Pattern("data_modification",
            _regex(r"\b(?:set|change|update|make)\s+(?:the\s+)?"
                   r"(?P<field>price|rate|cost|stock|quantity|inventory)\s+(?:(?:of|for)\s+)?"
                   r"(?P<product>.+?)\s+(?:to|as|is|at)\s+(?:rs\.?\s*|₹\s*)?(?P<value>\d+(?:\.\d+)?)\b"),
            _data_modification),
    Pattern("learn_alias",
            _first(TemplatePattern("[learn|teach] $alias [as|is|means|to] $target", suffix=True),
                   TemplatePattern("set $alias [as|means] $target", suffix=True)),
            _learn_alias),
    Pattern("bill_lookup",
            _regex(r"\b(?:bill|invoice|receipt)\s*(?:no\.?|number|#)?\s*(?P<bill_id>\d+)\b"),
            _bill),
    Pattern("check_alerts",
            _regex(r"\b(?:check|show|any)\s+(?:alerts|warnings|notifications)\b"),
            _fixed(AnalyticsQuery(sub_type="CHECK_ALERTS"))),
    Pattern("system_health",
            _regex(r"\b(?:system|health|connection|backup)\s+(?:status|check)\b"),
            _fixed(AnalyticsQuery(sub_type="SYSTEM_HEALTH"))),
    Pattern("self_heal",
            _regex(r"\b(?:reload|restart|refresh|reset|fix)\s+(?:the\s+)?(?:app|system|page|ui)\b"),
            _fixed(AnalyticsQuery(sub_type="SELF_HEAL"))),
    Pattern("clearance",
            _regex(r"\b(?:clearance|clear\s+(?:dead\s+)?stock|markdown\s+dead)\b"),
            _clearance),
    Pattern("analytics",
            _regex(r"\b(?:compare|growth|vs|versus|trending|trends?|best\s+sell\w*|top\s+sell\w*"
                   r"|predict\w*|forecast|projection|target|not\s+selling|worst\s+sell\w*"
                   r"|least\s+sold|slow\s+moving|dead\s+stock)\b"),
            _analytics),
    Pattern("customer_lookup",
            _first(TemplatePattern("[customer|client] [details of |details for |]$name", suffix=True)),
            _customer),
    Pattern("inventory",
            _regex(r"\b(?P<query>low\s+stock|out\s+of\s+stock|dead\s+stock|expiry|expiring"
                   r"|negative(?:\s+stock)?|alerts)\b"),
            _inventory),
    Pattern("report",
            _regex(r"\b(?P<kind>sales|sale|report|profit|turnover|collection|summary|suppliers?)\b"),
            _report),
    Pattern("clear_cart",
            _regex(r"\b(?:clear|empty|reset)\s+(?:the\s+)?(?:cart|basket|bill)\b"),
            _fixed(ClearCart())),
    Pattern("check_stock",
            _first(TemplatePattern("[stock|quantity|count|ethra|evide] [of |for |]$product", suffix=True),
                   TemplatePattern("how [much|many] $product[ left| in stock| do we have|]",
                                   suffix=True)),
            _check_stock),
    Pattern("remove_item",
            _first(TemplatePattern(f"{_REMOVE_VERBS} $product {_FROM_CART}", suffix=True),
                   TemplatePattern(f"{_REMOVE_VERBS} $product", suffix=True)),
            _remove),
    Pattern("add_item_quantity",
            _regex(rf"\b(?:add|give|need|want|tharu|venam|edu)\s+(?:me\s+)?(?P<qty>{_QTY})\s*"
                   rf"(?P<unit>{_UNITS})?\s+(?P<product>.+?)"
                   r"(?:\s+(?:to|in|into)\s+(?:the\s+)?(?:cart|bill|basket))?$"),
            _add_quantity),
    Pattern("add_item_trailing_quantity",
            _regex(r"\b(?:add|give|need|want|tharu|venam|edu)\s+(?:me\s+)?(?P<product>.+?)\s+"
                   r"(?P<qty>\d+(?:\.\d+)?)$"),
            _add_quantity),
    # Catch-all for "give ..." / "add ...": must stay last
    Pattern("add_item",
            _first(TemplatePattern(f"{_ADD_VERBS} [me |]$product {_CART}", suffix=True),
                   TemplatePattern(f"{_ADD_VERBS} [me |]$product", suffix=True)),
            _add),
)


class IntentClassifier:
    """Runs PATTERNS over normalized text, rewriting references through aliases."""

    def __init__(self, aliases=None, patterns=PATTERNS, builtin_aliases=None):
        self.aliases = aliases
        self.patterns = tuple(patterns)
        self.builtin_aliases = dict(BUILTIN_ALIASES if builtin_aliases is None else builtin_aliases)

    def resolve_reference(self, word):
        """Learned alias first, then the built-in table, else the word lowercased."""
        lower = " ".join(word.lower().split())
        if self.aliases is not None:
            learned = self.aliases.resolve(lower)
            if learned != lower:
                return learned
        return self.builtin_aliases.get(lower, lower)

    def classify(self, text):
        """Return (Pattern, Command) for the first matching rule, or (None, None)."""
        t = normalize(text)
        if not t:
            return None, None
        for pattern in self.patterns:
            found = pattern.matcher(t)
            if found is None:
                continue
            try:
                cmd = pattern.extractor(found, t)
            except ValueError:
                cmd = None
            if cmd is None:
                continue
            return pattern, self._rewrite_references(cmd)
        return None, None

    def parse(self, text):
        return self.classify(text)[1]

    def _rewrite_references(self, cmd):
        names = {f.name for f in dc_fields(cmd)}
        changes = {}
        for name in _REFERENCE_FIELDS:
            if name in names:
                changes[name] = self.resolve_reference(getattr(cmd, name))
        return replace(cmd, **changes) if changes else cmd
