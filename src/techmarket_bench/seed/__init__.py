"""
Synthetic data generators for the benchmark.

Every generator takes an explicit numpy.random.Generator owned by the
caller, so runs are reproducible for a given seed:

    >>> rng = np.random.default_rng(42)
    >>> clients = generate_clients(20000, rng)
"""

from .clients import generate_clients, generate_cpf, generate_phone
from .orders import generate_orders
from .payments import generate_payments
from .products import generate_products

__all__ = [
    "generate_clients",
    "generate_cpf",
    "generate_phone",
    "generate_orders",
    "generate_payments",
    "generate_products",
]
