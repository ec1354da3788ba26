"""
Client generator.

Produces clients with unique e-mails, Brazilian phone numbers and CPFs with
valid check digits.
"""

from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np

from ..models import Client


FIRST_NAMES = [
    "Ana", "Bruno", "Carla", "Diego", "Eduarda", "Felipe", "Gabriela", "Henrique",
    "Isabela", "João", "Larissa", "Lucas", "Mariana", "Mateus", "Natália", "Pedro",
    "Rafaela", "Rodrigo", "Sofia", "Thiago", "Vanessa", "Vinícius",
]

LAST_NAMES = [
    "Almeida", "Barbosa", "Cardoso", "Costa", "Ferreira", "Gomes", "Lima",
    "Martins", "Oliveira", "Pereira", "Ribeiro", "Rodrigues", "Santos", "Silva",
    "Souza", "Teixeira",
]

EMAIL_DOMAINS = ["example.com", "mail.com", "techmarket.com.br", "inbox.org"]


def _check_digit(digits: List[int]) -> int:
    weight = len(digits) + 1
    total = sum(d * (weight - i) for i, d in enumerate(digits))
    digit = 11 - (total % 11)
    return 0 if digit >= 10 else digit


def generate_cpf(rng: np.random.Generator) -> str:
    """
    Generate a CPF with valid check digits, formatted XXX.XXX.XXX-XX.

    Args:
        rng: Caller-owned random source

    Returns:
        Formatted CPF string
    """
    digits = [int(d) for d in rng.integers(0, 10, size=9)]
    digits.append(_check_digit(digits))
    digits.append(_check_digit(digits))

    text = "".join(str(d) for d in digits)
    return f"{text[0:3]}.{text[3:6]}.{text[6:9]}-{text[9:11]}"


def generate_phone(rng: np.random.Generator) -> str:
    """Generate a mobile number: two-digit area code plus 9XXXXXXXX."""
    area_code = int(rng.integers(11, 100))
    number = int(rng.integers(900000000, 1000000000))
    return f"{area_code:02d}{number:09d}"


def generate_clients(
    count: int,
    rng: np.random.Generator,
    now: Optional[datetime] = None
) -> List[Client]:
    """
    Generate clients with ids 1..count.

    Args:
        count: Number of clients to generate
        rng: Caller-owned random source
        now: Reference time (defaults to datetime.now())

    Returns:
        List of Client, registered within the last year
    """
    now = now or datetime.now()
    clients = []

    for client_id in range(1, count + 1):
        first = FIRST_NAMES[int(rng.integers(len(FIRST_NAMES)))]
        last = LAST_NAMES[int(rng.integers(len(LAST_NAMES)))]
        domain = EMAIL_DOMAINS[int(rng.integers(len(EMAIL_DOMAINS)))]

        clients.append(Client(
            id=client_id,
            name=f"{first} {last}",
            # The id suffix keeps e-mails unique across the whole run
            email=f"{first}.{last}{client_id}@{domain}".lower(),
            phone=generate_phone(rng),
            created_at=now - timedelta(days=int(rng.integers(0, 365))),
            cpf=generate_cpf(rng),
        ))

    return clients
