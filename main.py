"""WSGI entrypoint for the recipe catalog.

``python main.py`` starts the development server on ``PORT`` (trying the
following ports when it is taken). WSGI servers import the ``app`` object
defined below, e.g. ``gunicorn main:app``.
"""

from recipe_catalog import create_app
from recipe_catalog.server import serve

app = create_app()


if __name__ == "__main__":
    serve(app)


__all__ = ["app"]
