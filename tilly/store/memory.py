"""In-memory collaborators for the console/Telegram demo and the tests.

They keep everything in plain lists and dicts and ignore date ranges where a
real database would filter, but they honor the async contracts listed in
tilly/services.py. sample_services() wires them up with a small shop.
"""

import csv
from datetime import datetime
from pathlib import Path

from tilly.services import Services
from tilly.store.models import CartLine, Product


class MemoryCatalog:
    def __init__(self, products=()):
        self.products = list(products)

    async def list_all(self):
        return list(self.products)

    async def find(self, name_or_code):
        key = name_or_code.strip().lower()
        for p in self.products:
            if p.name.lower() == key or (p.code and p.code.lower() == key):
                return p
        return None

    async def low_stock(self):
        return [p for p in self.products if p.stock <= p.min_stock]

    def _get(self, product_id):
        for p in self.products:
            if p.id == product_id:
                return p
        raise KeyError(f"no product with id {product_id}")

    async def update_price(self, product_id, price):
        p = self._get(product_id)
        p.price = price
        note = "below cost price" if price < p.cost else ""
        return {"success": True, "message": note}

    async def update_stock(self, product_id, qty):
        p = self._get(product_id)
        p.stock = qty
        return {"success": True, "message": ""}


class MemoryCart:
    def __init__(self):
        self.lines = []

    def _line(self, product_id):
        for line in self.lines:
            if line.product.id == product_id:
                return line
        return None

    async def add(self, product, qty):
        line = self._line(product.id)
        if line:
            line.quantity += qty
        else:
            self.lines.append(CartLine(product, qty))

    async def remove(self, product_id):
        line = self._line(product_id)
        if line is None:
            return False
        self.lines.remove(line)
        return True

    async def update_quantity(self, product_id, qty):
        line = self._line(product_id)
        if line is None:
            return False
        if qty <= 0:
            self.lines.remove(line)
        else:
            line.quantity = qty
        return True

    async def clear(self):
        self.lines = []

    async def items(self):
        return list(self.lines)


class MemoryBilling:
    def __init__(self, bills=()):
        self.bills = list(bills)

    async def get_bill(self, number_or_id):
        key = str(number_or_id)
        for b in self.bills:
            if str(b.get("bill_no")) == key or str(b.get("id")) == key:
                return b
        return None


class MemoryCustomers:
    def __init__(self, customers=()):
        self.customers = list(customers)

    async def search(self, name_or_phone):
        key = name_or_phone.strip().lower()
        return [c for c in self.customers
                if key in c.get("name", "").lower() or key in c.get("phone", "")]


class MemoryReports:
    """Canned report tables keyed by metric. Every query is recorded."""

    def __init__(self, tables=None):
        self.tables = dict(tables or {})
        self.queries = []  # (metric, start, end, limit)

    async def query(self, metric, start, end, limit=None):
        self.queries.append((metric, start, end, limit))
        rows = [dict(r) for r in self.tables.get(metric, [])]
        return rows[:limit] if limit else rows


class MemoryCash:
    def __init__(self, session=None):
        self.session = session
        self.transactions = []

    async def current_session(self):
        return self.session

    async def add_transaction(self, session_id, kind, amount, reason):
        self.transactions.append({"session_id": session_id, "type": kind,
                                  "amount": amount, "reason": reason})


class CsvExporter:
    """Writes CSV exports. PDF rendering lives in the desktop app, so pdf returns None."""

    def __init__(self, out_dir):
        self.out_dir = Path(out_dir)

    async def export(self, filename, title, rows, fmt):
        if fmt != "csv" or not rows:
            return None
        self.out_dir.mkdir(parents=True, exist_ok=True)
        path = self.out_dir / filename
        columns = list(rows[0].keys())
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(rows)
        return str(path)


def sample_services(export_dir=None):
    """A small grocery shop with an open cash session and a week of sales."""
    catalog = MemoryCatalog([
        Product(1, "Amul Milk 500ml", "8901262150019", 30, 26, 40, "pcs"),
        Product(2, "Sugar 1kg", "8901725181222", 48, 42, 25, "kg"),
        Product(3, "Rice 5kg", "8906001050013", 320, 280, 12, "pcs"),
        Product(4, "Tata Tea 250g", "8901052004011", 140, 120, 3, "pcs"),
        Product(5, "Bru Coffee 100g", "8901030704339", 165, 140, 8, "pcs"),
        Product(6, "Parle-G Biscuit", "8901719101038", 10, 8, 60, "pcs"),
        Product(7, "Lifebuoy Soap", "8901030865237", 36, 30, 2, "pcs"),
        Product(8, "Bisleri Water 1L", "8906017290019", 20, 12, 48, "pcs"),
    ])
    today = datetime.now().strftime("%Y-%m-%d")
    reports = MemoryReports({
        "daily_sales": [{"total": 4820.0, "count": 37}],
        "payment_split": [{"payment_mode": "CASH", "total": 2900.0},
                          {"payment_mode": "UPI", "total": 1920.0}],
        "profit": [{"name": "Rice 5kg", "revenue": 1920, "cost": 1680, "profit": 240},
                   {"name": "Tata Tea 250g", "revenue": 840, "cost": 720, "profit": 120},
                   {"name": "Amul Milk 500ml", "revenue": 600, "cost": 520, "profit": 80}],
        "expenses": [{"amount": 150.0, "reason": "tea for staff"}],
        "suppliers": [{"name": "Kerala Agencies", "phone": "9847000001"},
                      {"name": "Malabar Traders", "phone": "9847000002"}],
        "trending": [{"name": "Amul Milk 500ml", "qty_sold": 120, "revenue": 3600},
                     {"name": "Parle-G Biscuit", "qty_sold": 95, "revenue": 950}],
        "least_selling": [{"name": "Bru Coffee 100g", "qty_sold": 0, "revenue": 0},
                          {"name": "Lifebuoy Soap", "qty_sold": 2, "revenue": 72}],
        "dead_stock": [{"id": 5, "name": "Bru Coffee 100g", "stock": 8,
                        "sell_price": 165, "cost_price": 140}],
        "comprehensive": [{"bill_no": "1001", "date": today, "customer": "Rahul",
                           "payment_mode": "CASH", "total": 108}],
    })
    billing = MemoryBilling([{
        "id": 1, "bill_no": "1001", "date": f"{today}T10:15:00",
        "customer_name": "Rahul", "total": 108,
        "items": [{"product_name": "Amul Milk 500ml", "quantity": 2, "total": 60},
                  {"product_name": "Sugar 1kg", "quantity": 1, "total": 48}],
    }])
    customers = MemoryCustomers([
        {"id": 1, "name": "Rahul Nair", "phone": "9847012345", "balance": 250,
         "total_purchases": 14},
        {"id": 2, "name": "Anjali Menon", "phone": "9847098765", "balance": 0,
         "total_purchases": 3},
    ])
    cash = MemoryCash({"id": 1, "opened_at": f"{today}T08:00:00", "opening_float": 2000})
    return Services(
        catalog=catalog,
        cart=MemoryCart(),
        billing=billing,
        customers=customers,
        reports=reports,
        cash=cash,
        exporter=CsvExporter(export_dir) if export_dir else None,
    )
