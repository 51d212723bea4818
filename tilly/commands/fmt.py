"""Number formatting shared by the handlers."""


def num(x):
    """2.0 → '2', 2.5 → '2.5'."""
    if x is None:
        return "?"
    if float(x).is_integer():
        return str(int(x))
    return f"{x:g}"


def money(x):
    """Rupee amount: 4820 → '₹4,820', 45.5 → '₹45.50'."""
    x = float(x or 0)
    if x.is_integer():
        return f"₹{int(x):,}"
    return f"₹{x:,.2f}"


def pct(x):
    """Format a percentage, dropping '.0' when it's a whole number."""
    s = f"{abs(x):.1f}"
    if s.endswith(".0"):
        s = s[:-2]
    return f"{s}%"
