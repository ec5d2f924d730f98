"""Shared fixtures for the LV network engine tests."""

import pytest

from lvnet.catalogs import DEFAULT_CABLES, IP_TYPES
from lvnet.models import LoadData, NetworkNode, ProjectParams

CABLE_70 = "3x70+54.6mm² Al"
CABLE_50 = "3x50+54.6mm² Al"
CABLE_35 = "3x35+54.6mm² Al"
CABLE_16 = "2#16(25)mm² Al"
CABLE_150 = "3x150+70mm² Al"


def node(node_id, parent_id="TRAFO", meters=0.0, cable=CABLE_70, **loads):
    return NetworkNode(
        id=node_id,
        parent_id=parent_id,
        length_meters=meters,
        cable_id=cable,
        loads=LoadData(**loads),
    )


@pytest.fixture
def cables():
    return dict(DEFAULT_CABLES)


@pytest.fixture
def ips():
    return dict(IP_TYPES)


@pytest.fixture
def params():
    return ProjectParams(
        trafo_kva=75,
        profile="Massivos",
        manual_class="B",
        normative_table="PRODIST",
    )


@pytest.fixture
def two_node_params():
    # One customer in PRODIST class A -> diversity factor 1.0
    return ProjectParams(trafo_kva=75, profile="Massivos", manual_class="A", normative_table="PRODIST")


@pytest.fixture
def two_node_network():
    return [
        node("TRAFO", parent_id="", cable=""),
        node("C1", meters=30, cable=CABLE_70, tri=1),
    ]


@pytest.fixture
def feeder_network():
    """
    TRAFO -> P1 (40 m) -> P2 (35 m)
                       -> P3 (30 m, solar)

    10 residential customers, PRODIST class B -> factor 1.4.
    """
    return [
        node("TRAFO", parent_id="", cable=""),
        node("P1", meters=40, cable=CABLE_70, mono=3, tri=1, ip_type="IP 100W", ip_qty=2),
        node("P2", parent_id="P1", meters=35, cable=CABLE_50, bi=2, point_qty=1, point_kva=5),
        node("P3", parent_id="P1", meters=30, cable=CABLE_35, mono=4, solar_kva=6, solar_qty=2),
    ]


@pytest.fixture
def risk_network():
    """Two-span feeder whose peak drop sits around the 5 % urban ceiling."""
    return [
        node("TRAFO", parent_id="", cable=""),
        node("P1", meters=45, cable=CABLE_35, mono=12, tri=4, ip_type="IP 100W", ip_qty=2),
        node("P2", parent_id="P1", meters=55, cable=CABLE_35, bi=10, point_qty=1, point_kva=15),
    ]


@pytest.fixture
def risk_params():
    return ProjectParams(trafo_kva=75, profile="Urbano Padrão", manual_class="A", normative_table="PRODIST")
