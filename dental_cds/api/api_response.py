"""JSON response envelope for the API.

    Success: {"success": true, "data": ..., "message": ...}
    Error:   {"success": false, "error": ..., "code": ...}
"""

from flask import jsonify

from ..exceptions import DentalCDSError


def api_success(data=None, message=None):
    """Return a success response."""
    response = {"success": True}
    if data is not None:
        response["data"] = data
    if message is not None:
        response["message"] = message
    return jsonify(response)


def api_error(error, status_code=400):
    """Return an error response.

    Engine errors carry their ``code`` and ``detail`` into the body.
    """
    response = {"success": False, "error": str(error)}
    if isinstance(error, DentalCDSError):
        response["error"] = error.message
        response["code"] = error.code
        if error.detail:
            response["detail"] = error.detail
    return jsonify(response), status_code
