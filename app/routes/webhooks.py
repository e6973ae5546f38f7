from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify, request

from ..services.ingestion import ingest_completion
from ..services.registry import get_services
from ..shared.errors import AwardsError
from ..shared.payloads import PayloadRejected, classify_payload

bp = Blueprint("webhooks", __name__, url_prefix="/webhooks")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


@bp.after_request
def add_cors_headers(response: Response) -> Response:
    for key, value in CORS_HEADERS.items():
        response.headers[key] = value
    return response


def public_base_url() -> str:
    configured = current_app.config.get("PUBLIC_BASE_URL")
    return (configured or request.host_url).rstrip("/")


@bp.route("/course-completion", methods=["POST", "OPTIONS"])
def course_completion():
    if request.method == "OPTIONS":
        return "", 204

    data = request.get_json(force=True, silent=True)
    if data is None:
        return jsonify({"error": "Invalid JSON payload"}), 400

    classified = classify_payload(data)
    if isinstance(classified, PayloadRejected):
        current_app.logger.info("[WEBHOOK] rejected payload details=%s", classified.details)
        return jsonify({"error": classified.message, "details": classified.details}), 400

    try:
        result = ingest_completion(classified, get_services(), base_url=public_base_url())
    except AwardsError as exc:
        current_app.logger.warning(
            "[WEBHOOK] failed status=%s error=%s details=%s",
            exc.status_code,
            exc.message,
            exc.details,
        )
        return jsonify(exc.to_dict()), exc.status_code
    return jsonify(result.to_response()), 200
