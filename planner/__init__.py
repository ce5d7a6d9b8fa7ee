"""Top-level package for the project planner backend."""

# Lazy import so the database layer can be used without building the app

__all__ = ["create_app", "app"]


def __getattr__(name):
    """Lazy import to prevent circular dependencies."""
    if name == "app" or name == "create_app":
        from planner.app.main import app as _app, create_app as _create_app
        if name == "app":
            return _app
        return _create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
