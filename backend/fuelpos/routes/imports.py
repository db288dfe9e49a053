# Overview: Flask API routes for bulk import templates and uploads.

from flask import Blueprint, Response, jsonify, request

from ..decorators import current_actor, require_auth, require_permission
from ..errors import ValidationError
from ..services import import_service
from .common import bool_arg, station_scope

imports_bp = Blueprint("imports", __name__, url_prefix="/api/bulk-import")


@imports_bp.get("/template/<import_type>")
@require_auth
@require_permission("BULK_IMPORT")
def template_route(import_type: str):
    content = import_service.generate_template(import_type, include_example=bool_arg("example", False))
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={import_type.lower()}_template.csv"},
    )


@imports_bp.post("")
@require_auth
@require_permission("BULK_IMPORT")
def import_route():
    """
    Import historical documents.

    multipart/form-data: file (.csv or .xlsx), type, stationId.
    JSON: {"type": ..., "stationId": ..., "rows": [{column: value}, ...]}.
    """
    if request.files:
        upload = request.files.get("file")
        if upload is None or not upload.filename:
            raise ValidationError("No file uploaded", field="file")
        form = request.form.to_dict()
        import_type = form.get("type") or form.get("import_type")
        station_id = station_scope(form)
        rows = import_service.read_upload(upload.filename, upload.stream)
    else:
        data = request.get_json(silent=True) or {}
        import_type = data.get("type") or data.get("import_type")
        station_id = station_scope(data)
        rows = data.get("rows")

    if not import_type:
        raise ValidationError("type is required", field="type")
    if not rows:
        raise ValidationError("No data rows found", field="file")

    result = import_service.import_rows(station_id, import_type, rows, current_actor())
    return jsonify(result), 200
