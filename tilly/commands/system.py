"""App control: theme, navigation, and till hardware.

Handles:
    "dark mode", "switch to light theme"
    "go to settings", "open the billing page"
    "open drawer", "test printer", "read scale"

Theme and navigation only publish an event; whatever front-end is listening
does the actual switching.
"""

from tilly.commands.fmt import num
from tilly.commands.parse import CommandResult, HardwareAction, Navigate, SwitchTheme

_HARDWARE_UNAVAILABLE = "⚠️ Hardware control is only available in the desktop app."


async def handle_switch_theme(cmd, ctx):
    ctx.services.events.emit("SWITCH_THEME", theme=cmd.theme)
    return CommandResult(True, f"Switched to {cmd.theme} mode 🌗", "THEME_SWITCHED")


async def handle_navigate(cmd, ctx):
    ctx.services.events.emit("NAVIGATE", path=cmd.route)
    return CommandResult(True, f"Opening {cmd.label}...", "NAVIGATED")


async def _open_drawer(hw):
    await hw.open_drawer()
    return CommandResult(True, "🔓 Cash drawer opened.", "DRAWER_OPENED")


async def _test_printer(hw):
    await hw.print_test()
    return CommandResult(True, "🖨️ Test receipt sent to printer.", "PRINTER_TESTED")


async def _read_scale(hw):
    reading = await hw.read_scale()
    if not reading.get("success"):
        return CommandResult(False, f"⚖️ Scale error: {reading.get('error') or 'no reading'}")
    return CommandResult(True, f"⚖️ Scale reading: **{num(reading.get('weight'))} kg**")


_ACTIONS = {
    "OPEN_DRAWER": _open_drawer,
    "TEST_PRINTER": _test_printer,
    "READ_SCALE": _read_scale,
}


async def handle_hardware_action(cmd, ctx):
    hw = ctx.services.hardware
    if hw is None:
        return CommandResult(False, _HARDWARE_UNAVAILABLE)
    try:
        return await _ACTIONS[cmd.action](hw)
    except Exception as e:
        return CommandResult(False, f"Hardware Error: {e}")


HANDLERS = {
    SwitchTheme: handle_switch_theme,
    Navigate: handle_navigate,
    HardwareAction: handle_hardware_action,
}
