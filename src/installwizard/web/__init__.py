"""HTTP surface for the wizard service."""

from installwizard.web.app import create_app, run

__all__ = ["create_app", "run"]
