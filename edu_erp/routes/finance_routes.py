from flask import Blueprint, g, jsonify, request

from edu_erp.services.campaign_service import (
    campaign_metrics,
    create_campaign,
    delete_campaign,
    get_campaign,
    get_campaign_roi_report,
    get_campaigns,
    update_campaign,
)
from edu_erp.utils.decorators import api_roles_required
from edu_erp.utils.permissions import ADMINS
from edu_erp.utils.validation import payload_dict

finance_bp = Blueprint("finance", __name__)

CAMPAIGN_ROLES = ADMINS + ("marketing_staff",)


def _payload():
    return payload_dict(request.get_json(silent=True))


@finance_bp.route("/campaigns", methods=["GET"])
@api_roles_required(*CAMPAIGN_ROLES)
def list_campaigns():
    campaigns = get_campaigns(request.args.get("status"))
    return jsonify({"success": True, "data": [c.to_dict() for c in campaigns]})


@finance_bp.route("/campaigns", methods=["POST"])
@api_roles_required(*CAMPAIGN_ROLES)
def post_campaign():
    campaign = create_campaign(_payload(), created_by=g.current_user.id)
    return jsonify({
        "success": True,
        "message": "Campaign created successfully",
        "data": campaign.to_dict()
    }), 201


@finance_bp.route("/campaigns/<int:campaign_id>", methods=["GET"])
@api_roles_required(*CAMPAIGN_ROLES)
def show_campaign(campaign_id):
    campaign = get_campaign(campaign_id)
    data = campaign.to_dict()
    data["metrics"] = campaign_metrics(campaign)
    return jsonify({"success": True, "data": data})


@finance_bp.route("/campaigns/<int:campaign_id>", methods=["PUT"])
@api_roles_required(*CAMPAIGN_ROLES)
def put_campaign(campaign_id):
    campaign = update_campaign(campaign_id, _payload())
    return jsonify({
        "success": True,
        "message": "Campaign updated successfully",
        "data": campaign.to_dict()
    })


@finance_bp.route("/campaigns/<int:campaign_id>", methods=["DELETE"])
@api_roles_required(*CAMPAIGN_ROLES)
def remove_campaign(campaign_id):
    delete_campaign(campaign_id)
    return jsonify({"success": True, "message": "Campaign deleted successfully"})


@finance_bp.route("/reports/campaign-roi", methods=["GET"])
@api_roles_required(*CAMPAIGN_ROLES)
def campaign_roi():
    return jsonify({"success": True, "data": get_campaign_roi_report()})
