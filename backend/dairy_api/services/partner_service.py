# Overview: Service-layer operations for partners; agencies, supervisors and vendors with their login accounts.

"""
Partner service.

Every agency and supervisor owns exactly one User (role AGENCY / SUPERVISOR)
created alongside the profile; a vendor gets a VENDOR login only when a
password is supplied. Profile name, email and mobile are mirrored onto the
linked user so login identifiers stay in step with the directory.

AGENCY ROUTING: an agency may be linked to at most one depot. Offline depots
route every subscription to that agency.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_

from ..errors import BadRequestError, ConflictError, NotFoundError
from ..extensions import db
from ..models import (
    Agency,
    DeliveryScheduleEntry,
    Depot,
    Purchase,
    PurchasePayment,
    Subscription,
    Supervisor,
    Vendor,
    VendorOrder,
    VendorOrderItem,
    Wastage,
)
from ..permissions import ROLE_AGENCY, ROLE_SUPERVISOR, ROLE_VENDOR
from ..validation import to_positive_int
from . import auth_service

logger = logging.getLogger(__name__)


def _get_or_404(model, obj_id: int, label: str):
    obj = db.session.get(model, obj_id)
    if not obj:
        raise NotFoundError(f"{label} not found")
    return obj


def _search(query, model, search: str | None):
    if not search:
        return query
    like = f"%{search.strip()}%"
    return query.filter(or_(model.name.ilike(like), model.mobile.ilike(like), model.email.ilike(like)))


def _sync_user(profile, patch: dict, *, password=None, is_active=None) -> None:
    if profile.user is None:
        return
    auth_service.update_user(
        profile.user,
        name=patch.get("name"),
        email=patch.get("email") if "email" in patch else None,
        mobile=patch.get("mobile"),
        password=password,
        is_active=is_active,
    )


def _apply_patch(obj, patch: dict) -> None:
    for key, value in patch.items():
        setattr(obj, key, value)


# ---------------------------------------------------------------------------
# Agencies
# ---------------------------------------------------------------------------

def _check_depot_free(depot_id, agency_id=None) -> None:
    if not depot_id:
        return
    _get_or_404(Depot, depot_id, "Depot")
    query = db.session.query(Agency.id).filter(Agency.depot_id == depot_id)
    if agency_id is not None:
        query = query.filter(Agency.id != agency_id)
    if query.first():
        raise ConflictError("Depot is already linked to another agency")


def list_agencies(*, search: str | None = None):
    return _search(db.session.query(Agency), Agency, search).order_by(Agency.name.asc())


def get_agency(agency_id: int) -> Agency:
    return _get_or_404(Agency, agency_id, "Agency")


def create_agency(patch: dict, *, password: str, is_active: bool = True) -> Agency:
    """
    Create an agency and its AGENCY login.

    Raises:
        ValidationError: bad mobile/email or weak password
        ConflictError: email/mobile already registered, depot already linked
    """
    _check_depot_free(patch.get("depot_id"))
    user = auth_service.create_user(
        name=patch["name"],
        password=password,
        role=ROLE_AGENCY,
        email=patch.get("email"),
        mobile=patch.get("mobile"),
        is_active=is_active,
    )
    agency = Agency(**patch, user_id=user.id)
    db.session.add(agency)
    db.session.flush()
    logger.info("Agency %s created with user %s", agency.id, user.id)
    return agency


def update_agency(agency_id: int, patch: dict, *, password=None, is_active=None) -> Agency:
    agency = get_agency(agency_id)
    if "depot_id" in patch:
        _check_depot_free(patch["depot_id"], agency_id=agency.id)
    _sync_user(agency, patch, password=password, is_active=is_active)
    _apply_patch(agency, patch)
    db.session.flush()
    return agency


def delete_agency(agency_id: int) -> None:
    agency = get_agency(agency_id)
    in_use = (
        db.session.query(Subscription.id).filter_by(agency_id=agency.id).first()
        or db.session.query(DeliveryScheduleEntry.id).filter_by(agent_id=agency.id).first()
        or db.session.query(VendorOrderItem.id).filter_by(agency_id=agency.id).first()
    )
    if in_use:
        raise BadRequestError("Agency has subscriptions, deliveries or vendor orders and cannot be deleted")
    if agency.supervisors:
        raise BadRequestError("Agency has supervisors and cannot be deleted")
    for location in agency.locations:
        location.agency_id = None

    user = agency.user
    db.session.delete(agency)
    db.session.flush()
    if user is not None:
        db.session.delete(user)
        db.session.flush()
    logger.info("Agency %s deleted", agency_id)


# ---------------------------------------------------------------------------
# Supervisors
# ---------------------------------------------------------------------------

def list_supervisors(*, search: str | None = None, agency_id=None):
    query = _search(db.session.query(Supervisor), Supervisor, search)
    if agency_id:
        query = query.filter(Supervisor.agency_id == to_positive_int(agency_id, "agency_id"))
    return query.order_by(Supervisor.name.asc())


def get_supervisor(supervisor_id: int) -> Supervisor:
    return _get_or_404(Supervisor, supervisor_id, "Supervisor")


def create_supervisor(patch: dict, *, password: str, is_active: bool = True) -> Supervisor:
    if patch.get("agency_id"):
        _get_or_404(Agency, patch["agency_id"], "Agency")
    user = auth_service.create_user(
        name=patch["name"],
        password=password,
        role=ROLE_SUPERVISOR,
        email=patch.get("email"),
        mobile=patch.get("mobile"),
        is_active=is_active,
    )
    supervisor = Supervisor(**patch, user_id=user.id)
    db.session.add(supervisor)
    db.session.flush()
    return supervisor


def update_supervisor(supervisor_id: int, patch: dict, *, password=None, is_active=None) -> Supervisor:
    supervisor = get_supervisor(supervisor_id)
    if patch.get("agency_id"):
        _get_or_404(Agency, patch["agency_id"], "Agency")
    _sync_user(supervisor, patch, password=password, is_active=is_active)
    _apply_patch(supervisor, patch)
    db.session.flush()
    return supervisor


def delete_supervisor(supervisor_id: int) -> None:
    supervisor = get_supervisor(supervisor_id)
    user = supervisor.user
    db.session.delete(supervisor)
    db.session.flush()
    if user is not None:
        db.session.delete(user)
        db.session.flush()


# ---------------------------------------------------------------------------
# Vendors
# ---------------------------------------------------------------------------

def list_vendors(*, search: str | None = None, is_dairy_supplier=None):
    query = _search(db.session.query(Vendor), Vendor, search)
    if is_dairy_supplier is not None:
        query = query.filter(Vendor.is_dairy_supplier.is_(is_dairy_supplier))
    return query.order_by(Vendor.name.asc())


def get_vendor(vendor_id: int) -> Vendor:
    return _get_or_404(Vendor, vendor_id, "Vendor")


def create_vendor(patch: dict, *, password: str | None = None, is_active: bool = True) -> Vendor:
    vendor = Vendor(**patch)
    if password:
        user = auth_service.create_user(
            name=patch["name"],
            password=password,
            role=ROLE_VENDOR,
            email=patch.get("email"),
            mobile=patch.get("mobile"),
            is_active=is_active,
        )
        vendor.user_id = user.id
    db.session.add(vendor)
    db.session.flush()
    return vendor


def update_vendor(vendor_id: int, patch: dict, *, password=None, is_active=None) -> Vendor:
    vendor = get_vendor(vendor_id)
    _sync_user(vendor, patch, password=password, is_active=is_active)
    _apply_patch(vendor, patch)
    db.session.flush()
    return vendor


def delete_vendor(vendor_id: int) -> None:
    vendor = get_vendor(vendor_id)
    in_use = (
        db.session.query(Purchase.id).filter_by(vendor_id=vendor.id).first()
        or db.session.query(Wastage.id).filter_by(vendor_id=vendor.id).first()
        or db.session.query(VendorOrder.id).filter_by(vendor_id=vendor.id).first()
        or db.session.query(PurchasePayment.id).filter_by(vendor_id=vendor.id).first()
    )
    if in_use:
        raise BadRequestError("Vendor has purchases, orders, payments or wastage records and cannot be deleted")
    user = vendor.user
    db.session.delete(vendor)
    db.session.flush()
    if user is not None:
        db.session.delete(user)
        db.session.flush()
