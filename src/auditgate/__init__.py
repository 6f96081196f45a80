"""auditgate: gate CI on dependency audit reports, with expiring exceptions."""

__version__ = "0.3.0"
