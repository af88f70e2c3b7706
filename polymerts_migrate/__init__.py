"""polymerts-migrate: rewrite PolymerTS components to polymer-decorators."""

__version__ = "0.1.0"
