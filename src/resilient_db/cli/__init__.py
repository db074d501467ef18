"""resilient-db command line interface."""

from resilient_db.cli.app import app

__all__ = ["app"]
