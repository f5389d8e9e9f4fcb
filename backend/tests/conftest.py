"""
Pytest fixtures for the dairy delivery backend tests.

Provides the in-memory test database, role users with bearer headers, and a
small catalog: one offline depot with its agency, one dairy product and one
priced variant holding opening stock.
"""

import pytest

from dairy_api import create_app
from dairy_api.config import TestConfig
from dairy_api.extensions import db
from dairy_api.models import DeliveryAddress, Depot, Product, Vendor
from dairy_api.permissions import ROLE_ADMIN, ROLE_DEPOT_ADMIN, ROLE_MEMBER
from dairy_api.services import auth_service, catalog_service, partner_service

PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app(TestConfig)
    app.config.update({
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp("uploads")),
        'INVOICE_FOLDER': str(tmp_path_factory.mktemp("invoices")),
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_user(role: str, *, name: str, email: str | None = None, mobile: str | None = None, **kwargs):
    """Create and commit a login account."""
    user = auth_service.create_user(
        name=name,
        password=PASSWORD,
        role=role,
        email=email,
        mobile=mobile,
        **kwargs,
    )
    db.session.commit()
    return user


def auth_headers(user) -> dict:
    """Bearer header for a user."""
    return {'Authorization': f'Bearer {auth_service.issue_token(user)}'}


# =============================================================================
# USERS
# =============================================================================


@pytest.fixture
def admin_user(db_session):
    return make_user(ROLE_ADMIN, name="Admin", email="admin@example.com")


@pytest.fixture
def member_user(db_session):
    return make_user(ROLE_MEMBER, name="Asha Member", email="asha@example.com", mobile="9876543210")


@pytest.fixture
def other_member_user(db_session):
    return make_user(ROLE_MEMBER, name="Ravi Member", email="ravi@example.com", mobile="9876500000")


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def member_headers(member_user):
    return auth_headers(member_user)


@pytest.fixture
def other_member_headers(other_member_user):
    return auth_headers(other_member_user)


# =============================================================================
# CATALOG
# =============================================================================


@pytest.fixture
def depot(db_session):
    depot = Depot(name="Kothrud Depot", address="12 Main Road, Pune", is_online=False)
    db_session.add(depot)
    db_session.commit()
    return depot


@pytest.fixture
def second_depot(db_session):
    depot = Depot(name="Baner Depot", address="4 Hill Road, Pune", is_online=False)
    db_session.add(depot)
    db_session.commit()
    return depot


@pytest.fixture
def product(db_session):
    product = Product(name="Cow Milk", unit="500 ml", is_dairy_product=True, maintain_stock=True)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture
def variant(db_session, depot, product):
    """mrp 30, 7-day tier 28, monthly tier 25; 100 units opening stock."""
    variant = catalog_service.create_variant({
        "depot_id": depot.id,
        "product_id": product.id,
        "name": "Cow Milk 500 ml",
        "mrp": 30,
        "buy_once_price": 30,
        "price_3_day": 29,
        "price_7_day": 28,
        "price_15_day": 27,
        "price_1_month": 25,
        "closing_qty": 100,
    })
    db_session.commit()
    return variant


@pytest.fixture
def second_variant(db_session, second_depot, product):
    variant = catalog_service.create_variant({
        "depot_id": second_depot.id,
        "product_id": product.id,
        "name": "Cow Milk 500 ml",
        "mrp": 30,
    })
    db_session.commit()
    return variant


@pytest.fixture
def vendor(db_session):
    vendor = Vendor(name="Sahyadri Dairy", mobile="9000000001", is_dairy_supplier=True)
    db_session.add(vendor)
    db_session.commit()
    return vendor


# =============================================================================
# PARTNERS / ADDRESSES
# =============================================================================


@pytest.fixture
def agency(db_session, depot):
    """Agency linked to the offline depot, so its orders route here."""
    agency = partner_service.create_agency(
        {
            "name": "Kothrud Agency",
            "mobile": "9000000002",
            "address1": "Shop 3, Paud Road",
            "city": "Pune",
            "pincode": "411038",
            "email": "agency@example.com",
            "depot_id": depot.id,
        },
        password=PASSWORD,
    )
    db_session.commit()
    return agency


@pytest.fixture
def agency_headers(agency):
    return auth_headers(agency.user)


@pytest.fixture
def depot_admin_headers(db_session, second_depot):
    user = make_user(ROLE_DEPOT_ADMIN, name="Baner Admin", email="baner@example.com", depot_id=second_depot.id)
    return auth_headers(user)


@pytest.fixture
def address(db_session, member_user):
    address = DeliveryAddress(
        member_id=member_user.member.id,
        recipient_name="Asha",
        mobile="9876543210",
        plot_building="Flat 5, Shanti Apartments",
        street_area="Karve Road",
        pincode="411038",
        city="Pune",
        state="Maharashtra",
        is_default=True,
    )
    db_session.add(address)
    db_session.commit()
    return address
