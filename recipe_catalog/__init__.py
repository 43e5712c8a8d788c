import os
from pathlib import Path
from typing import Optional, Tuple

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import BadRequest

from .errors import NotFoundError, StorageError, ValidationError
from .json_storage import JsonRecipeStorage
from .models import Recipe
from .static_files import serve_public_file
from .storage import RecipeRepository
from .validation import parse_indices_payload, parse_recipe_payload

DEFAULT_PUBLIC_DIR = Path(__file__).resolve().parent / "public"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Methods the static layer answers so that unmatched API calls fall through to it.
STATIC_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def create_app(
    storage: Optional[RecipeRepository] = None,
    public_dir: Optional[Path] = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    storage:
        Optional recipe repository. When ``None`` the application will use
        :class:`JsonRecipeStorage` configured through environment variables.
    public_dir:
        Directory served as static files. Defaults to ``PUBLIC_DIR`` from the
        environment, then to the ``public/`` folder shipped inside the package.
        Relative paths are resolved against the current working directory.
    """

    app = Flask(__name__, static_folder=None)
    app.json.sort_keys = False
    app.json.ensure_ascii = False

    if public_dir is None:
        public_dir = Path(os.environ.get("PUBLIC_DIR") or DEFAULT_PUBLIC_DIR)
    app.config["PUBLIC_DIR"] = Path(public_dir).resolve()

    if storage is None:
        storage = JsonRecipeStorage.from_env(app.config["PUBLIC_DIR"])
    app.config["RECIPE_STORAGE"] = storage

    @app.before_request
    def answer_preflight() -> Optional[Tuple[str, int]]:
        if request.method == "OPTIONS":
            return "", 204
        return None

    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        response.headers.update(CORS_HEADERS)
        return response

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError) -> Response:
        return _plain_text(str(exc), exc.status_code)

    @app.errorhandler(NotFoundError)
    def handle_not_found(exc: NotFoundError) -> Response:
        return _plain_text("Not found", exc.status_code)

    @app.get("/api/recipes")
    @app.get("/api/recipes/")
    def list_recipes() -> Response:
        recipes = app.config["RECIPE_STORAGE"].load()
        return jsonify([recipe.to_dict() for recipe in recipes])

    @app.post("/api/recipes")
    @app.post("/api/recipes/")
    def create_recipe() -> Tuple[Response, int]:
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]
        entry = parse_recipe_payload(_json_body())

        try:
            stored = storage_backend.append(entry)
        except StorageError:
            app.logger.exception("Error handling /api/recipes POST")
            return _plain_text("Server error saving recipe.", 500)

        app.logger.info("Saved recipe '%s'.", stored.name)
        return jsonify(stored.to_dict()), 201

    @app.delete("/api/recipes")
    @app.delete("/api/recipes/")
    def delete_recipes() -> Response:
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]
        indices = parse_indices_payload(_json_body())

        try:
            result = storage_backend.remove_by_indices(indices)
        except StorageError:
            app.logger.exception("Error handling /api/recipes DELETE")
            return _plain_text("Server error removing recipes.", 500)

        app.logger.info("Removed %d recipe(s), %d remaining.", result.removed, result.remaining)
        return jsonify(result.to_dict())

    @app.route("/", defaults={"filename": ""}, methods=STATIC_METHODS)
    @app.route("/<path:filename>", methods=STATIC_METHODS)
    def public_file(filename: str) -> Response:
        return serve_public_file(app.config["PUBLIC_DIR"], filename)

    return app


def _json_body():
    try:
        return request.get_json(force=True)
    except BadRequest:
        raise ValidationError("Malformed JSON body.") from None


def _plain_text(message: str, status: int) -> Response:
    return Response(message, status=status, mimetype="text/plain")


__all__ = ["create_app", "Recipe"]
