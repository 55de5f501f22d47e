from flask import jsonify, render_template, request
from sqlalchemy.exc import IntegrityError


class AppError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


def _wants_json():
    return request.path.startswith("/api/")


def _error_response(message, status_code):
    if _wants_json():
        return jsonify({"error": message}), status_code
    return render_template("error.html", message=message), status_code


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        if err.status_code >= 500:
            app.logger.error("Request failed: %s", err.message)
        return _error_response(err.message, err.status_code)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(_err):
        app.logger.warning("Database integrity error")
        return _error_response("Conflict. Resource already exists.", 409)

    @app.errorhandler(400)
    def bad_request(_err):
        return _error_response("Bad request", 400)

    @app.errorhandler(401)
    def unauthorized(_err):
        return _error_response("Unauthorized", 401)

    @app.errorhandler(403)
    def forbidden(_err):
        return _error_response("Forbidden", 403)

    @app.errorhandler(404)
    def not_found(_err):
        if _wants_json():
            return jsonify({"error": "Not found"}), 404
        return render_template("error.html", message="Page not found"), 404

    @app.errorhandler(405)
    def method_not_allowed(_err):
        return _error_response("Method not allowed", 405)

    @app.errorhandler(429)
    def too_many_requests(_err):
        return _error_response("Too many requests. Please slow down.", 429)

    @app.errorhandler(500)
    def server_error(_err):
        app.logger.exception("Internal server error")
        if _wants_json():
            return jsonify({"error": "Internal server error"}), 500
        return render_template("error.html", message="Something went wrong."), 500
