"""
Diversity Factor
================

Resolves the DMDI (diversified demand) factor that converts a count of
residential connections into coincident kVA.
"""

from typing import Dict, Iterable, List, Optional

from ..catalogs import DEFAULT_DIVERSITY_TABLE, DMDI_TABLES, DiversityRow
from ..models import NetworkNode


def count_residential(nodes: Iterable[NetworkNode]) -> int:
    """Total single + two + three-phase connections over all nodes."""
    return sum(n.loads.residential_count for n in nodes)


def resolve_diversity_factor(
    total_customers: int,
    table_name: str,
    class_name: str,
    tables: Optional[Dict[str, List[DiversityRow]]] = None,
) -> float:
    """
    Look up the diversity factor for a customer count.

    Unknown table names fall back to the default table; a count past
    every row uses the last row.

    Args:
        total_customers: Residential connections in the whole network
        table_name: Normative table ('PRODIST', 'ABNT', ...)
        class_name: Consumer class letter (A..D)
        tables: Table set to search (defaults to DMDI_TABLES)

    Returns:
        kVA per connection (0.0 when there are no customers)
    """
    if total_customers <= 0:
        return 0.0

    tables = DMDI_TABLES if tables is None else tables
    table = tables.get(table_name) or tables.get(DEFAULT_DIVERSITY_TABLE) or DMDI_TABLES[DEFAULT_DIVERSITY_TABLE]
    if not table:
        return 0.0

    row = next((r for r in table if r.matches(total_customers)), table[-1])
    return float(row.factors.get(class_name, 0.0))
