"""
Reference Catalogs
==================

Default engineering data used when a case does not bring its own:
- Aluminium multiplexed cables (resistance, moment coefficient, ampacity)
- Public-lighting fixture ratings
- Diversity (DMDI) tables per normative standard
- Load profiles with their voltage drop ceilings
"""

from dataclasses import dataclass, field
from typing import Dict, List

from .models import CableSpec

ROOT_ID = "TRAFO"

# Solar voltage rise ceiling (%), shared by the optimizer and Monte Carlo
MAX_SOLAR_RISE_PCT = 5.0

DEFAULT_CABLES: Dict[str, CableSpec] = {
    "2#16(25)mm² Al": CableSpec(r=1.91, x=0.10, coef=0.7779, ampacity=85),
    "3x35+54.6mm² Al": CableSpec(r=0.87, x=0.09, coef=0.2416, ampacity=135),
    "3x50+54.6mm² Al": CableSpec(r=0.64, x=0.09, coef=0.1784, ampacity=165),
    "3x70+54.6mm² Al": CableSpec(r=0.44, x=0.08, coef=0.1248, ampacity=205),
    "3x95+54.6mm² Al": CableSpec(r=0.32, x=0.08, coef=0.0891, ampacity=250),
    "3x150+70mm² Al": CableSpec(r=0.21, x=0.08, coef=0.0573, ampacity=330),
}

# Unit kVA per public-lighting fixture
IP_TYPES: Dict[str, float] = {
    "Sem IP": 0.0,
    "IP 70W": 0.07,
    "IP 100W": 0.10,
    "IP 150W": 0.15,
    "IP 250W": 0.25,
    "IP 400W": 0.40,
}


@dataclass(frozen=True)
class DiversityRow:
    """
    One row of a diversity (DMDI) table.

    Attributes:
        min_customers: Lower bound of the customer range (inclusive)
        max_customers: Upper bound of the customer range (inclusive)
        factors: kVA per connection for each consumer class (A..D)
    """
    min_customers: int
    max_customers: int
    factors: Dict[str, float] = field(default_factory=dict)

    def matches(self, customers: int) -> bool:
        return self.min_customers <= customers <= self.max_customers


def _row(lo: int, hi: int, a: float, b: float, c: float, d: float) -> DiversityRow:
    return DiversityRow(lo, hi, {"A": a, "B": b, "C": c, "D": d})


DMDI_TABLES: Dict[str, List[DiversityRow]] = {
    "PRODIST": [
        _row(1, 5, 1.0, 1.6, 2.6, 4.0),
        _row(6, 10, 0.9, 1.4, 2.2, 3.4),
        _row(11, 15, 0.8, 1.2, 1.9, 3.0),
        _row(16, 20, 0.7, 1.1, 1.7, 2.6),
        _row(21, 25, 0.6, 0.9, 1.5, 2.3),
        _row(26, 30, 0.5, 0.9, 1.4, 2.1),
        _row(31, 40, 0.5, 0.8, 1.3, 2.0),
        _row(41, 9999, 0.5, 0.8, 1.3, 2.0),
    ],
    "ABNT": [
        _row(1, 10, 1.60, 2.70, 4.50, 7.00),
        _row(11, 20, 1.40, 2.30, 3.80, 6.00),
        _row(21, 30, 1.20, 2.00, 3.30, 5.20),
        _row(31, 50, 1.00, 1.80, 3.00, 4.80),
        _row(51, 9999, 0.90, 1.50, 2.50, 4.00),
    ],
}

DEFAULT_DIVERSITY_TABLE = "PRODIST"


@dataclass(frozen=True)
class LoadProfile:
    """
    Normative load profile.

    Attributes:
        name: Profile identifier
        cqt_max: Maximum accumulated voltage drop (%)
        load_max: Maximum transformer occupancy (%)
    """
    name: str
    cqt_max: float
    load_max: float


LOAD_PROFILES: Dict[str, LoadProfile] = {
    "Urbano Padrão": LoadProfile("Urbano Padrão", cqt_max=5.0, load_max=100.0),
    "Rural": LoadProfile("Rural", cqt_max=10.0, load_max=100.0),
    "Massivos": LoadProfile("Massivos", cqt_max=6.0, load_max=120.0),
}

DEFAULT_PROFILE = "Massivos"


def get_load_profile(name: str) -> LoadProfile:
    """
    Look up a load profile, falling back to the default profile.

    Args:
        name: Profile name ('Urbano Padrão', 'Rural', 'Massivos')

    Returns:
        Matching LoadProfile
    """
    return LOAD_PROFILES.get(name, LOAD_PROFILES[DEFAULT_PROFILE])
