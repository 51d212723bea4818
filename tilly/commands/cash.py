"""Cash drawer expenses.

Handles:
    "add expense 250 for cleaning"
    "log payout 40 rupees on tea"
"""

from tilly.commands.fmt import money
from tilly.commands.parse import AddExpense, CommandResult


async def handle_add_expense(cmd, ctx):
    if cmd.amount is None:
        return CommandResult(False, "How much was the expense? Try \"Add expense 200 for cleaning\".")
    if cmd.amount <= 0:
        return CommandResult(False, f"An expense has to be more than {money(0)}.")

    cash = ctx.services.cash
    session = await cash.current_session()
    if not session:
        return CommandResult(False, "⚠️ No open cash session. Please open the register first.")

    await cash.add_transaction(session["id"], "PAYOUT", cmd.amount, cmd.reason)
    return CommandResult(
        True, f"💸 **Expense Recorded**\n{money(cmd.amount)} for \"{cmd.reason}\" "
              f"has been deducted from the drawer.",
        "EXPENSE_ADDED")


HANDLERS = {AddExpense: handle_add_expense}
