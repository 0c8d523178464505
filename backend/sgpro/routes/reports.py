from flask import Blueprint, jsonify, request

from ..decorators import get_store, require_auth, require_permission
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/financial")
@require_auth
@require_permission("reports.view")
def financial_report():
    try:
        report = reporting_service.financial_report(
            get_store(),
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/stock")
@require_auth
@require_permission("reports.view")
def stock_report():
    return jsonify(reporting_service.stock_report(get_store())), 200


@reports_bp.get("/sales")
@require_auth
@require_permission("reports.view")
def sales_report():
    try:
        report = reporting_service.sales_report(
            get_store(),
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/profit")
@require_auth
@require_permission("reports.view")
def profit_report():
    try:
        report = reporting_service.profit_report(
            get_store(),
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/dashboard")
@require_auth
@require_permission("dashboard")
def dashboard():
    return jsonify(reporting_service.dashboard_summary(get_store())), 200
