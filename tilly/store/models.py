"""Rows the catalog and cart collaborators hand back."""

from dataclasses import dataclass


@dataclass
class Product:
    id: int
    name: str
    code: str = ""      # barcode / SKU
    price: float = 0.0
    cost: float = 0.0
    stock: float = 0
    unit: str = "pcs"
    min_stock: float = 5


@dataclass
class CartLine:
    product: Product
    quantity: float

    @property
    def total(self):
        return self.product.price * self.quantity
