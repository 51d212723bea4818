"""Command objects for the command system.

The classifier turns an utterance into exactly one of the Command dataclasses
below (or None). The dispatcher picks a handler by the Command's class and
returns a CommandResult.

Every Command is frozen and carries only its own fields, so an add-item can't
carry a report period and a theme switch can't carry a product name.
Choice-valued fields are checked in __post_init__.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import ClassVar, Optional


class CommandType(str, Enum):
    ADD_ITEM = "add-item"
    REMOVE_ITEM = "remove-item"
    CLEAR_CART = "clear-cart"
    CHECK_STOCK = "check-stock"
    LEARN_ALIAS = "learn-alias"
    REPORT_QUERY = "report-query"
    BILL_LOOKUP = "bill-lookup"
    CUSTOMER_LOOKUP = "customer-lookup"
    INVENTORY_QUERY = "inventory-query"
    SWITCH_THEME = "switch-theme"
    NAVIGATE = "navigate"
    HARDWARE_ACTION = "hardware-action"
    DATA_MODIFICATION = "data-modification"
    ANALYTICS_QUERY = "analytics-query"
    AUTO_CLEARANCE = "auto-clearance"
    ADD_EXPENSE = "add-expense"
    UNKNOWN = "unknown"


THEMES = ("light", "dark")
REPORT_FORMATS = ("text", "pdf", "csv")
HARDWARE_ACTIONS = ("OPEN_DRAWER", "TEST_PRINTER", "READ_SCALE")
MODIFICATION_TARGETS = ("price", "stock")
ANALYTICS_SUBTYPES = (
    "COMPARE_SALES", "TRENDING_PRODUCTS", "PREDICT_SALES", "WORST_SELLERS",
    "CHECK_ALERTS", "SYSTEM_HEALTH", "SELF_HEAL", "DEAD_STOCK",
)


def _require(value, kind, name, optional=False):
    if value is None and optional:
        return
    if isinstance(value, bool) or not isinstance(value, kind):
        raise ValueError(f"{name} must be {getattr(kind, '__name__', kind)}, got {value!r}")


def _choice(value, choices, name):
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {value!r}")


_NUMBER = (int, float)


@dataclass(frozen=True)
class Command:
    """Base class: never constructed directly."""
    type: ClassVar[CommandType]

    def payload(self):
        """Field values as a plain dict (for logging and the -parse printer)."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class AddItem(Command):
    type: ClassVar[CommandType] = CommandType.ADD_ITEM
    product_name: str
    quantity: Optional[float] = None   # None = not said; dispatch asks "how much?"
    unit: Optional[str] = None

    def __post_init__(self):
        _require(self.product_name, str, "product_name")
        _require(self.quantity, _NUMBER, "quantity", optional=True)
        _require(self.unit, str, "unit", optional=True)


@dataclass(frozen=True)
class RemoveItem(Command):
    type: ClassVar[CommandType] = CommandType.REMOVE_ITEM
    product_name: str

    def __post_init__(self):
        _require(self.product_name, str, "product_name")


@dataclass(frozen=True)
class ClearCart(Command):
    type: ClassVar[CommandType] = CommandType.CLEAR_CART


@dataclass(frozen=True)
class CheckStock(Command):
    type: ClassVar[CommandType] = CommandType.CHECK_STOCK
    product_name: str

    def __post_init__(self):
        _require(self.product_name, str, "product_name")


@dataclass(frozen=True)
class LearnAlias(Command):
    type: ClassVar[CommandType] = CommandType.LEARN_ALIAS
    alias: str
    target: str

    def __post_init__(self):
        _require(self.alias, str, "alias")
        _require(self.target, str, "target")


@dataclass(frozen=True)
class ReportQuery(Command):
    type: ClassVar[CommandType] = CommandType.REPORT_QUERY
    report_type: str
    period: str = "today"
    format: str = "text"

    def __post_init__(self):
        _require(self.report_type, str, "report_type")
        _require(self.period, str, "period")
        _choice(self.format, REPORT_FORMATS, "format")


@dataclass(frozen=True)
class BillLookup(Command):
    type: ClassVar[CommandType] = CommandType.BILL_LOOKUP
    bill_id: str

    def __post_init__(self):
        _require(self.bill_id, str, "bill_id")


@dataclass(frozen=True)
class CustomerLookup(Command):
    type: ClassVar[CommandType] = CommandType.CUSTOMER_LOOKUP
    customer_name: str

    def __post_init__(self):
        _require(self.customer_name, str, "customer_name")


@dataclass(frozen=True)
class InventoryQuery(Command):
    type: ClassVar[CommandType] = CommandType.INVENTORY_QUERY
    query_type: str

    def __post_init__(self):
        _require(self.query_type, str, "query_type")


@dataclass(frozen=True)
class SwitchTheme(Command):
    type: ClassVar[CommandType] = CommandType.SWITCH_THEME
    theme: str

    def __post_init__(self):
        _choice(self.theme, THEMES, "theme")


@dataclass(frozen=True)
class Navigate(Command):
    type: ClassVar[CommandType] = CommandType.NAVIGATE
    route: str
    label: str

    def __post_init__(self):
        _require(self.route, str, "route")
        _require(self.label, str, "label")


@dataclass(frozen=True)
class HardwareAction(Command):
    type: ClassVar[CommandType] = CommandType.HARDWARE_ACTION
    action: str

    def __post_init__(self):
        _choice(self.action, HARDWARE_ACTIONS, "action")


@dataclass(frozen=True)
class DataModification(Command):
    type: ClassVar[CommandType] = CommandType.DATA_MODIFICATION
    target: str
    product_name: str
    value: float

    def __post_init__(self):
        _choice(self.target, MODIFICATION_TARGETS, "target")
        _require(self.product_name, str, "product_name")
        _require(self.value, _NUMBER, "value")


@dataclass(frozen=True)
class AnalyticsQuery(Command):
    type: ClassVar[CommandType] = CommandType.ANALYTICS_QUERY
    sub_type: str
    period: Optional[str] = None

    def __post_init__(self):
        _choice(self.sub_type, ANALYTICS_SUBTYPES, "sub_type")
        _require(self.period, str, "period", optional=True)


@dataclass(frozen=True)
class AutoClearance(Command):
    type: ClassVar[CommandType] = CommandType.AUTO_CLEARANCE
    discount_percent: Optional[int] = None

    def __post_init__(self):
        _require(self.discount_percent, int, "discount_percent", optional=True)
        if self.discount_percent is not None and not 0 < self.discount_percent < 100:
            raise ValueError(f"discount_percent out of range: {self.discount_percent}")


@dataclass(frozen=True)
class AddExpense(Command):
    type: ClassVar[CommandType] = CommandType.ADD_EXPENSE
    amount: Optional[float]
    reason: str = "Miscellaneous"

    def __post_init__(self):
        _require(self.amount, _NUMBER, "amount", optional=True)
        _require(self.reason, str, "reason")


@dataclass(frozen=True)
class Unknown(Command):
    type: ClassVar[CommandType] = CommandType.UNKNOWN
    text: str

    def __post_init__(self):
        _require(self.text, str, "text")


ALL_COMMAND_TYPES = (
    AddItem, RemoveItem, ClearCart, CheckStock, LearnAlias, ReportQuery,
    BillLookup, CustomerLookup, InventoryQuery, SwitchTheme, Navigate,
    HardwareAction, DataModification, AnalyticsQuery, AutoClearance,
    AddExpense, Unknown,
)


@dataclass
class CommandResult:
    success: bool
    message: str                        # always safe to show the user
    action_taken: Optional[str] = None  # machine tag, set on some successful mutations
