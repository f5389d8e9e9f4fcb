# Overview: Service-layer operations for leads captured from unserviceable pincodes.

from __future__ import annotations

import logging

from sqlalchemy import or_

from ..errors import NotFoundError
from ..extensions import db
from ..models import Lead, Product
from ..validation import ValidationError, enforce_rules_mobile

logger = logging.getLogger(__name__)

LEAD_STATUSES = {"NEW", "CONTACTED", "CONVERTED", "CLOSED"}


def _lead_or_404(lead_id: int) -> Lead:
    lead = db.session.get(Lead, lead_id)
    if not lead:
        raise NotFoundError("Lead not found")
    return lead


def create_lead(patch: dict) -> Lead:
    enforce_rules_mobile(patch.get("mobile"))
    if patch.get("product_id") and not db.session.get(Product, patch["product_id"]):
        raise NotFoundError("Product not found")
    lead = Lead(**patch, status="NEW")
    db.session.add(lead)
    db.session.flush()
    logger.info("Lead %s captured for pincode %s", lead.id, lead.pincode)
    return lead


def list_leads(*, status=None, search=None, pincode=None):
    query = db.session.query(Lead)
    if status:
        query = query.filter(Lead.status == str(status).upper())
    if pincode:
        query = query.filter(Lead.pincode == str(pincode).strip())
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(or_(Lead.name.ilike(like), Lead.mobile.ilike(like), Lead.email.ilike(like)))
    return query.order_by(Lead.created_at.desc(), Lead.id.desc())


def get_lead(lead_id: int) -> Lead:
    return _lead_or_404(lead_id)


def update_lead_status(lead_id: int, status, notes=None) -> Lead:
    lead = _lead_or_404(lead_id)
    status = str(status or "").strip().upper()
    if status not in LEAD_STATUSES:
        raise ValidationError(f"Invalid lead status: {status}", {"status": "invalid"})
    lead.status = status
    if notes is not None:
        lead.notes = notes
    db.session.flush()
    return lead


def delete_lead(lead_id: int) -> None:
    lead = _lead_or_404(lead_id)
    db.session.delete(lead)
    db.session.flush()
