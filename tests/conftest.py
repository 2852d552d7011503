"""Pytest fixtures for order pipeline tests."""

import pytest

from catalog import ProductEnsemble, ProductKit
from factories import fixed_clock, make_order, make_product


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def simple_order():
    """One product, RRP 10.00 x2 at 20% VAT, shipping 5.00."""
    return make_order(
        individual_products=(make_product(rrp=10.0, quantity=2, vat_rate=0.20),),
        shipping_cost=5.0,
    )


@pytest.fixture
def mixed_order():
    ensemble = ProductEnsemble(
        id="E1",
        name="Summer Set",
        products=(
            make_product(id="E1-A", name="Hat", rrp=10.0),
            make_product(id="E1-B", name="Towel", rrp=20.0),
        ),
        ensemble_discount=0.10,
        theme="Summer",
        quantity=1,
    )
    kit = ProductKit(
        id="K1",
        name="Starter Kit",
        mandatory_products=(make_product(id="K1-A", name="Base", rrp=30.0),),
        optional_products=(make_product(id="K1-B", name="Extra", rrp=10.0, quantity=2),),
        kit_price=45.0,
        kit_type="Starter",
        quantity=2,
    )
    return make_order(
        individual_products=(make_product(rrp=10.0, quantity=2),),
        product_ensembles=(ensemble,),
        product_kits=(kit,),
        shipping_cost=5.0,
    )
