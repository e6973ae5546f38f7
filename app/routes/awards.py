from __future__ import annotations

import os

from flask import Blueprint, abort, jsonify, send_from_directory

from ..services.registry import get_services
from ..shared.awards import get_award_by_id, get_awards
from ..shared.credentials import get_credential_by_slug, get_credentials

bp = Blueprint("awards", __name__)


@bp.get("/awards")
def list_awards():
    return jsonify([award.to_dict() for award in get_awards()])


@bp.get("/awards/<award_id>")
def show_award(award_id: str):
    award = get_award_by_id(award_id)
    if not award:
        return jsonify({"error": f"Award '{award_id}' not found"}), 404
    return jsonify(award.to_dict())


@bp.get("/credentials")
def list_credentials():
    return jsonify([credential.to_dict() for credential in get_credentials()])


@bp.get("/credentials/<slug>")
def show_credential(slug: str):
    credential = get_credential_by_slug(slug)
    if not credential:
        return jsonify({"error": f"Credential '{slug}' not found"}), 404
    return jsonify(credential.to_dict())


@bp.get("/storage/<bucket>/<path:key>")
def storage_object(bucket: str, key: str):
    storage = get_services().storage
    try:
        path = storage.path_for(bucket, key)
    except ValueError:
        abort(404)
    if not os.path.isfile(path):
        abort(404)
    response = send_from_directory(
        os.path.dirname(path), os.path.basename(path), max_age=0, conditional=False
    )
    response.headers["Cache-Control"] = "max-age=0"
    return response
