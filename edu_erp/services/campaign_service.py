import logging
from datetime import date

from edu_erp.errors import ConflictError, NotFoundError, ValidationError
from edu_erp.extensions import db
from edu_erp.models.campaign import CAMPAIGN_STATUSES, Campaign
from edu_erp.utils.validation import clean_text, parse_amount

logger = logging.getLogger(__name__)


# ----------------------------
# VALIDATION
# ----------------------------

def _count(value, label):
    if value in (None, ""):
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{label} must be a whole number")
    if number < 0:
        raise ValidationError(f"{label} cannot be negative")
    return number


def _date(value, label):
    if value in (None, ""):
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"{label} must be a date (YYYY-MM-DD)")


def _apply(campaign: Campaign, data: dict):
    if "name" in data:
        name = clean_text(data.get("name"), "Campaign name", required=True)
        clash = Campaign.query.filter(Campaign.name == name)
        if campaign.id:
            clash = clash.filter(Campaign.id != campaign.id)
        if clash.first():
            raise ConflictError("A campaign with this name already exists")
        campaign.name = name

    if "status" in data:
        status = data.get("status") or "draft"
        if status not in CAMPAIGN_STATUSES:
            raise ValidationError(f"Status must be one of: {', '.join(CAMPAIGN_STATUSES)}")
        campaign.status = status

    if "budget" in data:
        campaign.budget = parse_amount(data.get("budget"), "Budget")
    if "spent" in data:
        campaign.spent = parse_amount(data.get("spent"), "Spent")
    if "leads" in data:
        campaign.leads = _count(data.get("leads"), "Leads")
    if "startDate" in data:
        campaign.start_date = _date(data.get("startDate"), "Start date")
    if "endDate" in data:
        campaign.end_date = _date(data.get("endDate"), "End date")

    for key in ("description", "channel"):
        if key in data:
            setattr(campaign, key, data.get(key))

    if campaign.start_date and campaign.end_date and campaign.end_date < campaign.start_date:
        raise ValidationError("End date cannot be before start date")


# ----------------------------
# CRUD
# ----------------------------

def get_campaigns(status: str = None):
    query = Campaign.query
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Campaign.created_at.desc(), Campaign.id.desc()).all()


def get_campaign(campaign_id: int) -> Campaign:
    campaign = db.session.get(Campaign, campaign_id)
    if campaign is None:
        raise NotFoundError("Campaign not found")
    return campaign


def create_campaign(data: dict, created_by: int = None) -> Campaign:
    clean_text(data.get("name"), "Campaign name", required=True)

    campaign = Campaign(created_by=created_by, status="draft", budget=0, spent=0, leads=0)
    _apply(campaign, data)

    db.session.add(campaign)
    db.session.commit()
    logger.info("Campaign %s created by user %s", campaign.name, created_by)
    return campaign


def update_campaign(campaign_id: int, data: dict) -> Campaign:
    campaign = get_campaign(campaign_id)
    try:
        _apply(campaign, data)
    except ValueError:
        db.session.rollback()
        raise
    db.session.commit()
    return campaign


def delete_campaign(campaign_id: int):
    campaign = get_campaign(campaign_id)
    db.session.delete(campaign)
    db.session.commit()
    logger.info("Campaign %s deleted", campaign.name)


# ----------------------------
# REPORTS
# ----------------------------

def campaign_metrics(campaign: Campaign) -> dict:
    budget = float(campaign.budget or 0)
    spent = float(campaign.spent or 0)
    return {
        "id": campaign.id,
        "name": campaign.name,
        "status": campaign.status,
        "budget": budget,
        "spent": spent,
        "leads": campaign.leads,
        "costPerLead": round(spent / campaign.leads, 2) if campaign.leads else None,
        "budgetUtilization": round(spent / budget * 100, 1) if budget else None,
    }


def get_campaign_roi_report() -> dict:
    rows = [campaign_metrics(c) for c in get_campaigns()]
    total_spent = sum(r["spent"] for r in rows)
    total_leads = sum(r["leads"] for r in rows)
    return {
        "campaigns": rows,
        "totals": {
            "budget": sum(r["budget"] for r in rows),
            "spent": total_spent,
            "leads": total_leads,
            "costPerLead": round(total_spent / total_leads, 2) if total_leads else None,
        },
    }
