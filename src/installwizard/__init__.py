"""installwizard - composable installer wizard definitions."""

__version__ = "0.1.0"
