"""Reports and lookups: sales/profit reports, bills, customers, analytics.

Handles:
    "sales today", "profit this month", "weekly report as pdf"
    "give me the supplier list"       (pdf)
    "show bill 1001"
    "customer rahul"
    "compare sales", "trending items", "not selling", "predict sales"
    "check alerts", "system status", "reload app", "dead stock"

Report periods are words until here; they become dates at execution time,
so "today" always means the day the command runs.
"""

import calendar
from datetime import date, timedelta

from tilly.commands.fmt import money, num, pct
from tilly.commands.inventory import DEAD_STOCK_DAYS, dead_stock
from tilly.commands.parse import (
    AnalyticsQuery, BillLookup, CommandResult, CustomerLookup, ReportQuery,
)

_EXPORT_UNAVAILABLE = "⚠️ File export is only available in the desktop app."
_SYSTEM_UNAVAILABLE = "⚠️ System tools are only available in the desktop app."


def period_range(period, today=None):
    """Turn a period word into (start, end, label) with ISO dates."""
    today = today or date.today()
    if period == "yesterday":
        start = end = today - timedelta(days=1)
        label = "Yesterday"
    elif period in ("this week", "weekly"):
        start, end = today - timedelta(days=today.weekday()), today
        label = "This Week"
    elif period in ("this month", "monthly"):
        start, end = today.replace(day=1), today
        label = "This Month"
    elif period == "last month":
        end = today.replace(day=1) - timedelta(days=1)
        start = end.replace(day=1)
        label = "Last Month"
    else:
        start = end = today
        label = "Today"
    return start.isoformat(), end.isoformat(), label


async def _export(ctx, filename, title, rows, fmt):
    exporter = ctx.services.exporter
    if exporter is None:
        return CommandResult(False, _EXPORT_UNAVAILABLE)
    path = await exporter.export(filename, title, rows, fmt)
    if not path:
        return CommandResult(False, f"Sorry, I couldn't create {filename}.")
    return CommandResult(True, f"📄 **Report Ready!**\n{title} saved as: **{path}**")


# --- Report query ---

async def _profit_report(cmd, ctx, start, end, label):
    reports = ctx.services.reports
    rows = await reports.query("profit", start, end)
    if not rows:
        return CommandResult(True, "📉 **No Sales Data**\nThere are no sales records "
                                   "for this period, so I can't generate a report.")
    if cmd.format != "text":
        return await _export(ctx, f"Profit_Report_{start}.{cmd.format}",
                             f"Profit Analysis - {label}", rows, cmd.format)

    revenue = sum(r.get("revenue", 0) for r in rows)
    cost = sum(r.get("cost", 0) for r in rows)
    expenses = sum(r.get("amount", 0) for r in await reports.query("expenses", start, end))
    gross = revenue - cost
    net = gross - expenses
    margin = f"{net / revenue * 100:.1f}" if revenue > 0 else "0"

    top = []
    for r in rows[:3]:
        share = f" ({r.get('profit', 0) / gross * 100:.0f}%)" if gross else ""
        top.append(f"- **{r.get('name')}**: {money(r.get('profit', 0))}{share}")

    return CommandResult(
        True,
        f"💰 **Net Profit Analysis ({label})**\n"
        f"Net Profit: **{money(net)}** (Margin: {margin}%)\n"
        f"Revenue: {money(revenue)} | COGS: {money(cost)}\n"
        f"Expenses/Payouts: {money(expenses)}\n\n"
        f"**Top Performers:**\n" + "\n".join(top) + "\n\n"
        f"*Say \"Profit PDF\" for full details.*")


async def _supplier_report(cmd, ctx, start, end, label):
    suppliers = await ctx.services.reports.query("suppliers", start, end)
    if cmd.format != "text":
        return await _export(ctx, f"Suppliers_List_{end}.{cmd.format}",
                             "Supplier List", suppliers, cmd.format)
    names = "\n".join(f"- {s.get('name')}" for s in suppliers[:5])
    return CommandResult(True, f"🚚 **Suppliers**\nFound {len(suppliers)} active suppliers."
                               + (f"\n\n{names}" if names else ""))


async def _sales_report(cmd, ctx, start, end, label):
    reports = ctx.services.reports
    if cmd.format != "text":
        rows = await reports.query("comprehensive", start, end)
        return await _export(ctx, f"Comprehensive_Sales_Report_{label.replace(' ', '_')}"
                                  f"_{start}.{cmd.format}",
                             f"Sales Report - {label}", rows, cmd.format)

    rows = await reports.query("daily_sales", start, end)
    if not rows:
        return CommandResult(True, f"No sales recorded for {label}.")
    total = sum(r.get("total", 0) for r in rows)
    count = sum(r.get("count", 0) for r in rows)
    payments = await reports.query("payment_split", start, end)
    split = " | ".join(f"{p.get('payment_mode')}: {money(p.get('total'))}" for p in payments)
    return CommandResult(
        True,
        f"📊 **Sales Report ({label})**\n"
        f"Total Sales: **{money(total)}**\n"
        f"Transactions: {count}\n\n"
        f"**By Payment Mode:**\n{split or 'No payment data'}\n\n"
        f"*Say \"Sales PDF\" for the full report.*")


async def handle_report_query(cmd, ctx):
    start, end, label = period_range(cmd.period)
    if "profit" in cmd.report_type:
        return await _profit_report(cmd, ctx, start, end, label)
    if "supplier" in cmd.report_type:
        return await _supplier_report(cmd, ctx, start, end, label)
    return await _sales_report(cmd, ctx, start, end, label)


# --- Lookups ---

async def handle_bill_lookup(cmd, ctx):
    bill = await ctx.services.billing.get_bill(cmd.bill_id)
    if not bill:
        return CommandResult(False, f"🚫 Bill #{cmd.bill_id} not found.")
    items = "\n".join(
        f"- {i.get('product_name')} x{num(i.get('quantity'))} ({money(i.get('total'))})"
        for i in bill.get("items", []))
    return CommandResult(
        True,
        f"🧾 **Bill #{bill.get('bill_no', cmd.bill_id)}**\n"
        f"Date: {str(bill.get('date', ''))[:10]}\n"
        f"Customer: {bill.get('customer_name') or 'Walk-in'}\n"
        f"Total: {money(bill.get('total'))}\n\n"
        f"**Items:**\n{items}")


async def handle_customer_lookup(cmd, ctx):
    customers = await ctx.services.customers.search(cmd.customer_name)
    if not customers:
        return CommandResult(False, f"🚫 No customer found matching \"{cmd.customer_name}\".")
    c = customers[0]
    return CommandResult(
        True,
        f"👤 **Customer Details**\n"
        f"Name: {c.get('name')}\n"
        f"Phone: {c.get('phone', '')}\n"
        f"Balance: {money(c.get('balance'))}\n"
        f"Total Visits: {c.get('total_purchases') or 0}")


# --- Analytics ---

async def _compare_sales(ctx, today):
    reports = ctx.services.reports
    yesterday = (today - timedelta(days=1)).isoformat()
    t = today.isoformat()
    current = sum(r.get("total", 0) for r in await reports.query("daily_sales", t, t))
    previous = sum(r.get("total", 0) for r in await reports.query("daily_sales", yesterday, yesterday))
    if previous:
        change = (current - previous) / previous * 100
    else:
        change = 100.0 if current else 0.0
    arrow = "📈" if change >= 0 else "📉"
    sign = "+" if change >= 0 else "-"
    return CommandResult(
        True,
        f"📊 **Sales Comparison (Today vs Yesterday)**\n\n"
        f"Today: **{money(current)}**\n"
        f"Yesterday: {money(previous)}\n"
        f"Growth: {arrow} **{sign}{pct(change)}**")


async def _trending(ctx, today):
    start = (today - timedelta(days=7)).isoformat()
    products = await ctx.services.reports.query("trending", start, today.isoformat(), limit=5)
    if not products:
        return CommandResult(True, "No sales data found for this week.")
    lines = "\n".join(
        f"{i}. **{p.get('name')}** - {num(p.get('qty_sold', 0))} sold ({money(p.get('revenue'))})"
        for i, p in enumerate(products, 1))
    return CommandResult(True, f"🔥 **Trending Products (Last 7 Days)**\n\n{lines}")


async def _worst_sellers(ctx, today):
    start = (today - timedelta(days=30)).isoformat()
    products = await ctx.services.reports.query("least_selling", start, today.isoformat(), limit=5)
    if not products:
        return CommandResult(True, "Could not analyze product performance.")
    header = "📉 **Slow Moving Products (Last 30 Days)**"
    if any(p.get("qty_sold", 0) == 0 for p in products):
        header = "⚠️ **Zero Sales Alert (Last 30 Days)**\nThese items have not sold at all:"
    lines = "\n".join(
        f"- **{p.get('name')}**: "
        f"{'🚫 0 Sold' if p.get('qty_sold', 0) == 0 else num(p['qty_sold']) + ' sold'}"
        f" ({money(p.get('revenue'))})"
        for p in products)
    return CommandResult(True, f"{header}\n\n{lines}\n\n*Consider running a promotion for these items.*")


async def _predict(ctx, today):
    start = today.replace(day=1).isoformat()
    rows = await ctx.services.reports.query("daily_sales", start, today.isoformat())
    total = sum(r.get("total", 0) for r in rows)
    daily = total / today.day
    days_in_month = calendar.monthrange(today.year, today.month)[1]
    projected = daily * days_in_month
    return CommandResult(
        True,
        f"🔮 **Sales Projection (End of Month)**\n\n"
        f"Current Sales: {money(round(total, 2))}\n"
        f"Daily Average: {money(round(daily, 2))}\n"
        f"Predicted Total: **{money(round(projected, 2))}**\n\n"
        f"*Based on performance so far this month.*")


async def _check_alerts(ctx, today):
    alerts = await ctx.services.catalog.low_stock()
    if alerts:
        lines = "\n".join(f"- **{p.name}**: Only {num(p.stock)} left" for p in alerts)
        return CommandResult(
            True,
            f"⚠️ **System Alerts Found**\n\nI found the following low stock warnings:\n"
            f"{lines}\n\n*Time to reorder!*")
    return CommandResult(
        True, "✅ **System Healthy**\nI checked for alerts and everything looks good. "
              "No low stock warnings found.")


async def _system_health(ctx, today):
    system = ctx.services.system
    if system is None:
        return CommandResult(False, _SYSTEM_UNAVAILABLE)
    health = await system.check_health()
    db = health.get("database", {})
    backup = health.get("backup", {})
    emoji = "✅" if db.get("status") == "ONLINE" else "⚠️"
    return CommandResult(
        True,
        f"**System Diagnostic** {emoji}\n\n"
        f"🗄️ **Database**: {db.get('message', 'unknown')} ({db.get('status', 'UNKNOWN')})\n"
        f"💾 **Backup**: {backup.get('message', 'unknown')}")


async def _self_heal(ctx, today):
    system = ctx.services.system
    if system is None:
        return CommandResult(False, _SYSTEM_UNAVAILABLE)
    await system.self_heal()
    return CommandResult(True, "♻️ Restarting interface...")


async def _dead_stock(ctx, today):
    items = await dead_stock(ctx, today)
    if not items:
        return CommandResult(True, "✅ **No Dead Stock**\nEverything has sold in the last "
                                   f"{DEAD_STOCK_DAYS} days.")
    lines = "\n".join(f"- **{p.get('name')}**: {num(p.get('stock', 0))} units "
                      f"({money(p.get('sell_price'))})" for p in items[:5])
    return CommandResult(
        True,
        f"🕸️ **Dead Stock Alert (6 Months)**\n\nFound {len(items)} items that haven't sold "
        f"in {DEAD_STOCK_DAYS} days:\n{lines}\n\n"
        f"*Say \"Clearance\" to markdown these items by 25%.*")


_ANALYTICS = {
    "COMPARE_SALES": _compare_sales,
    "TRENDING_PRODUCTS": _trending,
    "WORST_SELLERS": _worst_sellers,
    "PREDICT_SALES": _predict,
    "CHECK_ALERTS": _check_alerts,
    "SYSTEM_HEALTH": _system_health,
    "SELF_HEAL": _self_heal,
    "DEAD_STOCK": _dead_stock,
}


async def handle_analytics_query(cmd, ctx):
    run = _ANALYTICS.get(cmd.sub_type)
    if run is None:
        return CommandResult(False, "Unknown analytics query.")
    return await run(ctx, date.today())


HANDLERS = {
    ReportQuery: handle_report_query,
    BillLookup: handle_bill_lookup,
    CustomerLookup: handle_customer_lookup,
    AnalyticsQuery: handle_analytics_query,
}
