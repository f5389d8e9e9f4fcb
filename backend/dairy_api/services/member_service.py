# Overview: Service-layer operations for members; delivery addresses and the admin member directory.

from __future__ import annotations

import logging

from sqlalchemy import or_

from ..errors import ForbiddenError, NotFoundError
from ..extensions import db
from ..models import DeliveryAddress, Location, Member, User
from ..permissions import ROLE_ADMIN
from ..validation import enforce_rules_mobile, to_positive_int
from .wallet_service import get_member, member_for_user

logger = logging.getLogger(__name__)


def _member_for(user, member_id=None) -> Member:
    """The caller's own member profile; admins may act on any member by id."""
    if user.role == ROLE_ADMIN and member_id:
        return get_member(to_positive_int(member_id, "member_id"))
    return member_for_user(user)


def _address_or_404(address_id: int, user) -> DeliveryAddress:
    address = db.session.get(DeliveryAddress, address_id)
    if not address:
        raise NotFoundError("Delivery address not found")
    if user.role != ROLE_ADMIN and (address.member is None or address.member.user_id != user.id):
        raise ForbiddenError("Not authorized to access this address")
    return address


def _clear_default(member_id: int, keep_id: int | None = None) -> None:
    query = db.session.query(DeliveryAddress).filter(
        DeliveryAddress.member_id == member_id,
        DeliveryAddress.is_default.is_(True),
    )
    if keep_id is not None:
        query = query.filter(DeliveryAddress.id != keep_id)
    query.update({DeliveryAddress.is_default: False}, synchronize_session="fetch")


def list_addresses(*, user, member_id=None) -> list[DeliveryAddress]:
    member = _member_for(user, member_id)
    return (
        db.session.query(DeliveryAddress)
        .filter(DeliveryAddress.member_id == member.id)
        .order_by(DeliveryAddress.is_default.desc(), DeliveryAddress.id.asc())
        .all()
    )


def get_address(address_id: int, *, user) -> DeliveryAddress:
    return _address_or_404(address_id, user)


def create_address(patch: dict, *, user, member_id=None) -> DeliveryAddress:
    """
    Add an address for the member. The first address, or one created with
    is_default=true, becomes the only default.
    """
    member = _member_for(user, member_id)
    enforce_rules_mobile(patch.get("mobile"))
    if patch.get("location_id") and not db.session.get(Location, patch["location_id"]):
        raise NotFoundError("Location not found")

    has_any = db.session.query(DeliveryAddress.id).filter_by(member_id=member.id).first() is not None
    make_default = bool(patch.pop("is_default", False)) or not has_any

    address = DeliveryAddress(**patch, member_id=member.id, is_default=make_default)
    db.session.add(address)
    db.session.flush()
    if make_default:
        _clear_default(member.id, keep_id=address.id)
    db.session.flush()
    return address


def update_address(address_id: int, patch: dict, *, user) -> DeliveryAddress:
    address = _address_or_404(address_id, user)
    if "mobile" in patch:
        enforce_rules_mobile(patch.get("mobile"))
    if patch.get("location_id") and not db.session.get(Location, patch["location_id"]):
        raise NotFoundError("Location not found")

    make_default = patch.pop("is_default", None)
    for key, value in patch.items():
        setattr(address, key, value)
    if make_default:
        address.is_default = True
        _clear_default(address.member_id, keep_id=address.id)
    db.session.flush()
    return address


def set_default_address(address_id: int, *, user) -> DeliveryAddress:
    address = _address_or_404(address_id, user)
    address.is_default = True
    _clear_default(address.member_id, keep_id=address.id)
    db.session.flush()
    return address


def delete_address(address_id: int, *, user) -> None:
    address = _address_or_404(address_id, user)
    member_id = address.member_id
    was_default = address.is_default
    db.session.delete(address)
    db.session.flush()

    if was_default:
        replacement = (
            db.session.query(DeliveryAddress)
            .filter_by(member_id=member_id)
            .order_by(DeliveryAddress.id.asc())
            .first()
        )
        if replacement is not None:
            replacement.is_default = True
            db.session.flush()


def list_members(*, search: str | None = None, is_active=None):
    """Admin member directory, joined to the login account for search by email/mobile."""
    query = db.session.query(Member).join(User, Member.user_id == User.id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(or_(Member.name.ilike(like), User.email.ilike(like), User.mobile.ilike(like)))
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))
    return query.order_by(Member.name.asc(), Member.id.asc())


def set_member_active(member_id: int, is_active: bool) -> Member:
    member = get_member(member_id)
    member.user.is_active = bool(is_active)
    db.session.flush()
    logger.info("Member %s %s", member.id, "activated" if is_active else "deactivated")
    return member
