"""Product generator with per-category price ranges."""

import math
from typing import List

import numpy as np

from ..models import PRODUCT_CATEGORIES, Product


PRODUCT_PREFIXES = [
    "Pro", "Ultra", "Max", "Plus", "Lite", "Premium", "Elite", "Smart", "Tech", "Advanced",
]

PRODUCT_BRANDS = [
    "TechPro", "SmartTech", "InnovatePro", "FutureTech", "NextGen",
    "EliteTech", "PrimeTech", "UltraTech", "MaxTech", "ProTech",
]

CATEGORY_PRICE_RANGES = {
    "Smartphones": (800.00, 8000.00),
    "Notebooks": (2000.00, 15000.00),
    "Tablets": (500.00, 5000.00),
    "Smart TVs": (1200.00, 12000.00),
    "Headphones": (50.00, 2000.00),
    "Smartwatches": (200.00, 3000.00),
    "Cameras": (500.00, 8000.00),
    "Accessories": (20.00, 500.00),
    "Peripherals": (50.00, 1000.00),
    "PC Components": (100.00, 5000.00),
}


def truncate_cents(value: float) -> float:
    """Drop everything below one cent (no rounding up)."""
    return math.floor(value * 100) / 100


def generate_product_name(category: str, rng: np.random.Generator) -> str:
    brand = PRODUCT_BRANDS[int(rng.integers(len(PRODUCT_BRANDS)))]
    prefix = PRODUCT_PREFIXES[int(rng.integers(len(PRODUCT_PREFIXES)))]
    model = int(rng.integers(1000, 10000))
    return f"{brand} {category} {prefix} {model}"


def generate_price(category: str, rng: np.random.Generator) -> float:
    low, high = CATEGORY_PRICE_RANGES[category]
    return truncate_cents(low + rng.random() * (high - low))


def generate_products(count: int, rng: np.random.Generator) -> List[Product]:
    """
    Generate products with ids 1..count.

    Args:
        count: Number of products to generate
        rng: Caller-owned random source

    Returns:
        List of Product with stock between 100 and 1000
    """
    products = []

    for product_id in range(1, count + 1):
        category = PRODUCT_CATEGORIES[int(rng.integers(len(PRODUCT_CATEGORIES)))]
        products.append(Product(
            id=product_id,
            name=generate_product_name(category, rng),
            category=category,
            price=generate_price(category, rng),
            stock=int(rng.integers(100, 1001)),
        ))

    return products
