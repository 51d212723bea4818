"""Cart commands: add, remove, clear, and check stock.

Handles:
    "add 2 kg sugar"
    "give me 3 milk"
    "add milk"                  (asks how much)
    "remove soap from the cart"
    "clear the cart"
    "stock of sugar", "how much rice left"

Product names go through the fuzzy resolver against the whole catalog.
"""

from tilly.commands.fmt import num
from tilly.commands.parse import AddItem, CheckStock, ClearCart, CommandResult, RemoveItem


async def find_product(ctx, name):
    """Resolve a product name against a fresh catalog snapshot. Product or None."""
    products = await ctx.services.catalog.list_all()
    match = ctx.resolver.resolve(name, products)
    return match.product if match else None


def _not_found(name):
    return CommandResult(False, f"Could not find product \"{name}\"")


async def handle_add_item(cmd, ctx):
    product = await find_product(ctx, cmd.product_name)
    if product is None:
        return _not_found(cmd.product_name)

    if cmd.quantity is None:
        return CommandResult(False, f"How much {product.name} do you want?")
    qty = cmd.quantity
    if qty <= 0:
        return CommandResult(False, f"How much {product.name} do you want? "
                                    f"{num(qty)} isn't a quantity I can add.")

    # Low stock warns but never blocks the sale
    if product.stock < qty:
        ctx.services.events.emit("SHOW_TOAST", type="info",
                                 message=f"Warning: Low Stock ({num(product.stock)})")

    await ctx.services.cart.add(product, qty)
    return CommandResult(True, f"Added {num(qty)} {product.name}", "ADDED_TO_CART")


async def handle_remove_item(cmd, ctx):
    product = await find_product(ctx, cmd.product_name)
    if product is None:
        return CommandResult(False, f"Product \"{cmd.product_name}\" not found")

    removed = await ctx.services.cart.remove(product.id)
    if not removed:
        return CommandResult(False, f"{product.name} is not in the cart.")
    return CommandResult(True, f"Removed {product.name}", "REMOVED_FROM_CART")


async def handle_clear_cart(cmd, ctx):
    await ctx.services.cart.clear()
    return CommandResult(True, "Cart cleared", "CLEARED_CART")


async def handle_check_stock(cmd, ctx):
    product = await find_product(ctx, cmd.product_name)
    if product is None:
        return CommandResult(False, f"Product \"{cmd.product_name}\" not found")
    return CommandResult(True, f"{product.name} Stock: {num(product.stock)} units")


HANDLERS = {
    AddItem: handle_add_item,
    RemoveItem: handle_remove_item,
    ClearCart: handle_clear_cart,
    CheckStock: handle_check_stock,
}
