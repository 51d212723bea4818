from tilly.commands import aliases, cart, cash, inventory, reports, system

HANDLER_MODULES = [cart, aliases, inventory, reports, cash, system]

ALL_HANDLERS = {}
for _mod in HANDLER_MODULES:
    ALL_HANDLERS.update(_mod.HANDLERS)
