"""Inventory commands: stock alerts, price/stock edits, and clearance markdowns.

Handles:
    "low stock", "out of stock items", "negative stock"
    "set price of milk to 45"
    "update the stock of sugar to 50"
    "clearance", "clearance 40%"
"""

import math
from datetime import date, timedelta

from tilly.commands.cart import find_product
from tilly.commands.fmt import money, num
from tilly.commands.parse import AutoClearance, CommandResult, DataModification, InventoryQuery

DEFAULT_DISCOUNT = 25     # percent off when "clearance" has no number
DEAD_STOCK_DAYS = 180     # no sales in this many days makes an item dead stock
_MAX_LISTED = 5


def _stock_list(products):
    return "\n".join(f"- {p.name}: {num(p.stock)} left" for p in products[:_MAX_LISTED])


async def handle_inventory_query(cmd, ctx):
    q = cmd.query_type
    catalog = ctx.services.catalog

    if "negative" in q:
        products = [p for p in await catalog.list_all() if p.stock < 0]
        if not products:
            return CommandResult(True, "✅ No items with negative stock.")
        return CommandResult(
            True,
            f"⚠️ **Negative Stock**\n{len(products)} items show below zero. "
            f"Time for a stocktake:\n\n{_stock_list(products)}")

    if "out" in q:
        products = [p for p in await catalog.list_all() if p.stock <= 0]
        if not products:
            return CommandResult(True, "✅ Nothing is out of stock.")
        return CommandResult(
            True, f"🚫 **Out of Stock**\n{len(products)} items:\n\n{_stock_list(products)}")

    if "low" in q or "alert" in q:
        low = await catalog.low_stock()
        if not low:
            return CommandResult(True, "✅ Inventory is healthy! No low stock items.")
        return CommandResult(
            True,
            f"⚠️ **Low Stock Alert**\nFound {len(low)} items running low:\n\n{_stock_list(low)}")

    return CommandResult(False, "I can only check for low, out-of-stock or negative stock right now.")


async def handle_data_modification(cmd, ctx):
    product = await find_product(ctx, cmd.product_name)
    if product is None:
        return CommandResult(False, f"Could not find product \"{cmd.product_name}\"")

    catalog = ctx.services.catalog
    if cmd.target == "price":
        result = await catalog.update_price(product.id, cmd.value)
        if not result.get("success"):
            return CommandResult(False, f"Failed to update price: {result.get('message')}")
        extra = f" ({result['message']})" if result.get("message") else ""
        return CommandResult(
            True, f"✅ Updated price of **{product.name}** to {money(cmd.value)}{extra}",
            "PRICE_UPDATED")

    result = await catalog.update_stock(product.id, cmd.value)
    if not result.get("success"):
        return CommandResult(False, f"Failed to update stock: {result.get('message')}")
    extra = f" ({result['message']})" if result.get("message") else ""
    return CommandResult(
        True, f"✅ Updated stock of **{product.name}** to {num(cmd.value)} units{extra}",
        "STOCK_UPDATED")


async def dead_stock(ctx, today=None):
    """Rows for items with no sales in the last DEAD_STOCK_DAYS."""
    today = today or date.today()
    start = today - timedelta(days=DEAD_STOCK_DAYS)
    return await ctx.services.reports.query("dead_stock", start.isoformat(), today.isoformat())


async def handle_auto_clearance(cmd, ctx):
    """Mark every dead-stock item down by the same percent.

    Items are repriced one at a time. There is no rollback: an item that
    fails is counted and reported, and the ones already repriced stay that way.
    """
    items = await dead_stock(ctx)
    if not items:
        return CommandResult(True, "No dead stock found to clear.")

    percent = cmd.discount_percent or DEFAULT_DISCOUNT
    factor = (100 - percent) / 100
    count = 0
    failed = []

    for item in items:
        name = item.get("name", item.get("id"))
        try:
            new_price = math.floor(item["sell_price"] * factor)
            result = await ctx.services.catalog.update_price(item["id"], new_price)
        except Exception as e:
            failed.append(f"{name} ({e})")
            continue
        if result.get("success"):
            count += 1
        else:
            failed.append(f"{name} ({result.get('message')})")

    msg = (f"🏷️ **Clearance Event Started!**\n\n"
           f"I have marked down **{count}** dead stock items by **{percent}%**.")
    if failed:
        msg += f"\n\n⚠️ {len(failed)} could not be repriced: " + ", ".join(failed)
    msg += "\n\n*Check the 'Dead Stock' report to see them.*"
    return CommandResult(count > 0, msg, "CLEARANCE_APPLIED" if count else None)


HANDLERS = {
    InventoryQuery: handle_inventory_query,
    DataModification: handle_data_modification,
    AutoClearance: handle_auto_clearance,
}
