class RecipeCatalogError(Exception):
    """Base class for errors raised while serving a request."""

    status_code = 500


class ValidationError(RecipeCatalogError):
    """A request payload is missing a field or has the wrong shape."""

    status_code = 400


class NotFoundError(RecipeCatalogError):
    """No static resource exists for the requested path."""

    status_code = 404


class StorageError(RecipeCatalogError):
    """Reading or writing the catalog file failed."""

    status_code = 500


__all__ = ["NotFoundError", "RecipeCatalogError", "StorageError", "ValidationError"]
