"""End-to-end tests: utterance → Router → handler → in-memory shop."""

import asyncio
from datetime import date, timedelta
from pathlib import Path

import pytest

from tilly.commands.aliases import AliasStore
from tilly.commands.parse import Unknown
from tilly.commands.router import NOT_UNDERSTOOD, Router
from tilly.store.memory import MemoryCash, MemoryReports, sample_services


@pytest.fixture
def shop(tmp_path):
    services = sample_services(export_dir=tmp_path / "exports")
    router = Router(AliasStore(tmp_path / "aliases.json"), services, log_path=None)
    return router, services


def say(router, text):
    return asyncio.run(router.dispatch(text))


def _cart(services):
    return [(line.product.name, line.quantity) for line in services.cart.lines]


# --- Cart ---

def test_add_with_quantity_and_unit(shop):
    router, services = shop
    r = say(router, "add 2 kg sugar")
    assert r.success
    assert r.message == "Added 2 Sugar 1kg"
    assert r.action_taken == "ADDED_TO_CART"
    assert _cart(services) == [("Sugar 1kg", 2.0)]


def test_missing_quantity_asks_and_leaves_cart(shop):
    router, services = shop
    r = say(router, "add milk")
    assert not r.success
    assert r.message == "How much Amul Milk 500ml do you want?"
    assert r.action_taken is None
    assert _cart(services) == []


def test_unknown_product_leaves_cart(shop):
    router, services = shop
    r = say(router, "add 2 xyzzy plugh")
    assert not r.success
    assert "Could not find product" in r.message
    assert _cart(services) == []


def test_fuzzy_product_name(shop):
    router, services = shop
    assert say(router, "add 1 amul mlik").message == "Added 1 Amul Milk 500ml"


def test_manglish_builtin_alias(shop):
    router, services = shop
    assert say(router, "give me 3 paal").message == "Added 3 Amul Milk 500ml"


def test_low_stock_warns_but_adds(shop):
    router, services = shop
    r = say(router, "add 5 soap")
    assert r.success
    assert ("SHOW_TOAST", {"type": "info", "message": "Warning: Low Stock (2)"}) \
        in services.events.history
    assert _cart(services) == [("Lifebuoy Soap", 5.0)]


def test_remove_item(shop):
    router, services = shop
    say(router, "add 2 kg sugar")
    r = say(router, "remove sugar from the cart")
    assert r.action_taken == "REMOVED_FROM_CART"
    assert _cart(services) == []


def test_remove_item_not_in_cart(shop):
    router, services = shop
    r = say(router, "remove soap")
    assert not r.success
    assert "not in the cart" in r.message


def test_clear_cart_is_idempotent(shop):
    router, services = shop
    say(router, "add 2 kg sugar")
    first = say(router, "clear the cart")
    second = say(router, "clear the cart")
    assert first.success and second.success
    assert first.action_taken == second.action_taken == "CLEARED_CART"
    assert _cart(services) == []


def test_check_stock(shop):
    router, services = shop
    assert say(router, "how much rice left").message == "Rice 5kg Stock: 12 units"


# --- Aliases ---

def test_learned_alias_round_trip(tmp_path):
    path = tmp_path / "aliases.json"
    router = Router(AliasStore(path), sample_services(), log_path=None)
    r = say(router, "learn cheeni as sugar")
    assert r.action_taken == "LEARNED_ALIAS"
    assert say(router, "add 2 cheeni").message == "Added 2 Sugar 1kg"

    # A fresh router over the same file still knows it
    restarted = Router(AliasStore(path), sample_services(), log_path=None)
    assert say(restarted, "add 1 cheeni").message == "Added 1 Sugar 1kg"


# --- Catalog edits ---

def test_set_price(shop):
    router, services = shop
    r = say(router, "set price of milk to 45")
    assert r.success
    assert r.action_taken == "PRICE_UPDATED"
    assert services.catalog.products[0].price == 45


def test_set_price_below_cost_is_noted(shop):
    router, services = shop
    r = say(router, "set price of milk to 20")
    assert r.success
    assert "below cost price" in r.message


def test_set_stock(shop):
    router, services = shop
    r = say(router, "update the stock of sugar to 50")
    assert r.action_taken == "STOCK_UPDATED"
    assert services.catalog.products[1].stock == 50


def test_set_price_unknown_product(shop):
    router, services = shop
    r = say(router, "set price of xyzzy to 10")
    assert not r.success
    assert "Could not find product" in r.message


# --- Expenses ---

def test_expense_beats_add_item(shop):
    router, services = shop
    r = say(router, "add expense 250 for cleaning")
    assert r.action_taken == "EXPENSE_ADDED"
    assert services.cash.transactions == [
        {"session_id": 1, "type": "PAYOUT", "amount": 250.0, "reason": "cleaning"}]
    assert _cart(services) == []


def test_expense_without_amount_asks(shop):
    router, services = shop
    r = say(router, "add expense")
    assert not r.success
    assert services.cash.transactions == []


def test_expense_needs_open_session(shop):
    router, services = shop
    services.cash = MemoryCash(None)
    r = say(router, "add expense 100 for tea")
    assert not r.success
    assert "No open cash session" in r.message


# --- Clearance ---

def test_clearance_default_discount(shop):
    router, services = shop
    r = say(router, "clearance")
    assert r.success
    assert r.action_taken == "CLEARANCE_APPLIED"
    assert "**1**" in r.message and "**25%**" in r.message
    assert services.catalog.products[4].price == 123   # floor(165 * 0.75)

    metric, start, end, _ = services.reports.queries[-1]
    assert metric == "dead_stock"
    assert start == (date.today() - timedelta(days=180)).isoformat()


def test_clearance_keeps_going_past_failures(shop):
    router, services = shop
    services.reports.tables["dead_stock"].append(
        {"id": 99, "name": "Ghost Item", "stock": 1, "sell_price": 50})
    r = say(router, "clearance 50%")
    assert r.success
    assert "**1**" in r.message
    assert "1 could not be repriced" in r.message
    assert "Ghost Item" in r.message
    assert services.catalog.products[4].price == 82   # floor(165 * 0.5)


def test_clearance_nothing_to_clear(shop):
    router, services = shop
    services.reports.tables["dead_stock"] = []
    r = say(router, "clearance")
    assert r.success
    assert r.action_taken is None
    assert "No dead stock" in r.message


# --- App control and hardware ---

class FakeHardware:
    def __init__(self):
        self.opened = 0

    async def open_drawer(self):
        self.opened += 1

    async def print_test(self):
        raise RuntimeError("printer offline")

    async def read_scale(self):
        return {"success": True, "weight": 1.25, "error": None}


def test_theme_publishes_event(shop):
    router, services = shop
    r = say(router, "dark mode")
    assert r.action_taken == "THEME_SWITCHED"
    assert services.events.history[-1] == ("SWITCH_THEME", {"theme": "dark"})


def test_navigate_publishes_event(shop):
    router, services = shop
    r = say(router, "go to settings")
    assert r.action_taken == "NAVIGATED"
    assert services.events.history[-1] == ("NAVIGATE", {"path": "/settings"})


def test_failing_subscriber_does_not_change_result(shop):
    router, services = shop

    def broken(kind, data):
        raise RuntimeError("ui gone")

    services.events.subscribe(broken)
    assert say(router, "dark mode").success


def test_hardware_unavailable(shop):
    router, services = shop
    r = say(router, "open drawer")
    assert not r.success
    assert "only available in the desktop app" in r.message


def test_hardware_bridge(shop):
    router, services = shop
    services.hardware = FakeHardware()
    assert say(router, "open drawer").action_taken == "DRAWER_OPENED"
    assert services.hardware.opened == 1
    assert "1.25 kg" in say(router, "read the scale").message


def test_hardware_error(shop):
    router, services = shop
    services.hardware = FakeHardware()
    r = say(router, "test printer")
    assert not r.success
    assert r.message == "Hardware Error: printer offline"


# --- Reports and lookups ---

def test_sales_report(shop):
    router, services = shop
    r = say(router, "sales today")
    assert r.success
    assert "Total Sales: **₹4,820**" in r.message
    assert "CASH: ₹2,900" in r.message
    today = date.today().isoformat()
    assert services.reports.queries[0] == ("daily_sales", today, today, None)


def test_profit_report_nets_expenses(shop):
    router, services = shop
    r = say(router, "profit today")
    assert "Net Profit: **₹290** (Margin: 8.6%)" in r.message
    assert "Rice 5kg" in r.message


def test_profit_report_without_sales(shop):
    router, services = shop
    services.reports.tables["profit"] = []
    assert "No Sales Data" in say(router, "profit today").message


def test_pdf_needs_desktop_exporter(shop):
    router, services = shop
    services.exporter = None
    r = say(router, "weekly report as pdf")
    assert not r.success
    assert "only available in the desktop app" in r.message


def test_csv_export(shop):
    router, services = shop
    r = say(router, "supplier list csv")
    assert r.success
    assert "Report Ready" in r.message
    exported = list(Path(services.exporter.out_dir).glob("Suppliers_List_*.csv"))
    assert len(exported) == 1
    assert "Kerala Agencies" in exported[0].read_text(encoding="utf-8")


def test_bill_lookup(shop):
    router, services = shop
    r = say(router, "show bill 1001")
    assert r.success
    assert "Rahul" in r.message
    assert "Sugar 1kg x1" in r.message


def test_bill_not_found(shop):
    router, services = shop
    r = say(router, "bill 999")
    assert not r.success
    assert "Bill #999 not found" in r.message


def test_customer_lookup(shop):
    router, services = shop
    r = say(router, "customer anjali")
    assert r.success
    assert "Anjali Menon" in r.message


# --- Analytics and inventory ---

def test_low_stock_query(shop):
    router, services = shop
    r = say(router, "low stock")
    assert "Found 2 items" in r.message


def test_check_alerts(shop):
    router, services = shop
    r = say(router, "check alerts")
    assert "Tata Tea 250g" in r.message
    assert "Lifebuoy Soap" in r.message


def test_trending(shop):
    router, services = shop
    r = say(router, "trending items")
    assert "Amul Milk 500ml" in r.message
    assert services.reports.queries[-1][0] == "trending"
    assert services.reports.queries[-1][3] == 5


def test_worst_sellers_flags_zero_sales(shop):
    router, services = shop
    assert "Zero Sales Alert" in say(router, "what is not selling").message


def test_prediction(shop):
    router, services = shop
    assert "Predicted Total" in say(router, "predict sales").message


def test_system_health_unavailable(shop):
    router, services = shop
    r = say(router, "system status")
    assert not r.success
    assert "only available in the desktop app" in r.message


# --- Fallbacks and failures ---

def test_small_talk_fallback(shop):
    router, services = shop
    r = say(router, "thank you")
    assert r.success
    assert r.action_taken is None


def test_not_understood(shop):
    router, services = shop
    r = say(router, "zzqx vvvv")
    assert not r.success
    assert r.message == NOT_UNDERSTOOD


def test_collaborator_error_is_reported(shop):
    router, services = shop

    async def broken():
        raise RuntimeError("database is locked")

    services.catalog.list_all = broken
    r = say(router, "stock of sugar")
    assert not r.success
    assert r.message == "Error: database is locked"


def test_unhandled_command_type(shop):
    router, services = shop
    r = asyncio.run(router.dispatcher.execute(Unknown(text="hmm")))
    assert not r.success
    assert r.message == "unrecognized command"


def test_request_log(tmp_path):
    log_path = tmp_path / "tilly.log"
    router = Router(AliasStore(None), sample_services(), log_path=log_path)
    say(router, "add 2 kg sugar")
    say(router, "zzqx vvvv")
    lines = log_path.read_text().splitlines()
    assert len(lines) == 4
    assert lines[0].endswith("[text]  add 2 kg sugar")
    assert lines[1].startswith("  -> add_item_quantity, product_name='sugar'")
    assert lines[3] == "  -> none"


def test_register_extra_handler(shop):
    router, services = shop

    async def echo(cmd, ctx):
        from tilly.commands.parse import CommandResult
        return CommandResult(True, f"echo: {cmd.text}")

    router.dispatcher.register(Unknown, echo)
    r = asyncio.run(router.dispatcher.execute(Unknown(text="hmm")))
    assert r.message == "echo: hmm"


def test_clearance_skips_row_without_price(shop):
    router, services = shop
    services.reports.tables["dead_stock"] = [
        {"id": 5, "name": "Bru Coffee 100g", "stock": 8, "sell_price": 165},
        {"id": 7, "name": "Lifebuoy Soap", "stock": 2, "sell_price": None},
        {"id": 6, "name": "Parle-G Biscuit", "stock": 60, "sell_price": 10},
    ]
    r = say(router, "clearance")
    assert r.success
    assert r.action_taken == "CLEARANCE_APPLIED"
    assert "**2**" in r.message
    assert "1 could not be repriced" in r.message
    assert "Lifebuoy Soap" in r.message
    assert services.catalog.products[4].price == 123   # floor(165 * 0.75)
    assert services.catalog.products[5].price == 7     # floor(10 * 0.75)
    assert services.catalog.products[6].price == 36


# --- Report periods ---

def test_period_range():
    from tilly.commands.reports import period_range
    wednesday = date(2026, 1, 7)
    assert period_range("today", wednesday) == ("2026-01-07", "2026-01-07", "Today")
    assert period_range("yesterday", wednesday) == ("2026-01-06", "2026-01-06", "Yesterday")
    assert period_range("this week", wednesday) == ("2026-01-05", "2026-01-07", "This Week")
    assert period_range("weekly", wednesday) == ("2026-01-05", "2026-01-07", "This Week")
    assert period_range("this month", wednesday) == ("2026-01-01", "2026-01-07", "This Month")
    assert period_range("last month", wednesday) == ("2025-12-01", "2025-12-31", "Last Month")


# --- Analytics ---

class DailyReports(MemoryReports):
    """daily_sales keyed by start date; every other metric is empty."""

    def __init__(self, by_day):
        super().__init__()
        self.by_day = by_day

    async def query(self, metric, start, end, limit=None):
        self.queries.append((metric, start, end, limit))
        if metric == "daily_sales" and start in self.by_day:
            return [{"total": self.by_day[start], "count": 1}]
        return []


def _days_ago(n):
    return (date.today() - timedelta(days=n)).isoformat()


def test_compare_sales_growth(shop):
    router, services = shop
    services.reports = DailyReports({_days_ago(0): 500, _days_ago(1): 400})
    r = say(router, "compare sales")
    assert r.success
    assert "Today: **₹500**" in r.message
    assert "Yesterday: ₹400" in r.message
    assert "📈 **+25%**" in r.message


def test_compare_sales_decline(shop):
    router, services = shop
    services.reports = DailyReports({_days_ago(0): 300, _days_ago(1): 400})
    assert "📉 **-25%**" in say(router, "compare sales").message


def test_compare_sales_after_a_zero_day(shop):
    router, services = shop
    services.reports = DailyReports({_days_ago(0): 500})
    r = say(router, "compare sales")
    assert "Yesterday: ₹0" in r.message
    assert "📈 **+100%**" in r.message


class FakeSystem:
    def __init__(self):
        self.healed = 0

    async def check_health(self):
        return {"database": {"status": "ONLINE", "message": "Connected"},
                "backup": {"message": "Last backup 2h ago"}}

    async def self_heal(self):
        self.healed += 1


def test_self_heal_unavailable(shop):
    router, services = shop
    r = say(router, "reload app")
    assert not r.success
    assert "only available in the desktop app" in r.message


def test_self_heal(shop):
    router, services = shop
    services.system = FakeSystem()
    r = say(router, "reload app")
    assert r.success
    assert "Restarting" in r.message
    assert services.system.healed == 1


def test_system_health(shop):
    router, services = shop
    services.system = FakeSystem()
    r = say(router, "system status")
    assert r.success
    assert "Connected (ONLINE)" in r.message
    assert "Last backup 2h ago" in r.message


def test_dead_stock_listing(shop):
    router, services = shop
    r = say(router, "dead stock")
    assert r.success
    assert "Found 1 items" in r.message
    assert "**Bru Coffee 100g**: 8 units (₹165)" in r.message


def test_dead_stock_none(shop):
    router, services = shop
    services.reports.tables["dead_stock"] = []
    assert "No Dead Stock" in say(router, "dead stock").message


# --- Lookups and inventory branches ---

def test_customer_not_found(shop):
    router, services = shop
    r = say(router, "customer zed")
    assert not r.success
    assert "No customer found matching \"zed\"" in r.message


def test_negative_stock_query(shop):
    router, services = shop
    services.catalog.products[7].stock = -3
    r = say(router, "negative stock")
    assert r.success
    assert "1 items show below zero" in r.message
    assert "Bisleri Water 1L: -3 left" in r.message


def test_no_negative_stock(shop):
    router, services = shop
    assert "No items with negative stock" in say(router, "negative stock").message


def test_out_of_stock_query(shop):
    router, services = shop
    services.catalog.products[6].stock = 0
    r = say(router, "out of stock items")
    assert r.success
    assert "Lifebuoy Soap: 0 left" in r.message


def test_expiry_is_unsupported(shop):
    router, services = shop
    r = say(router, "expiry")
    assert not r.success
    assert "low, out-of-stock or negative" in r.message


def test_add_with_trailing_quantity(shop):
    router, services = shop
    assert say(router, "add milk 2").message == "Added 2 Amul Milk 500ml"
    assert say(router, "add 2 packets of sugar").message == "Added 2 Sugar 1kg"
