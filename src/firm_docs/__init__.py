"""firm-docs: revision history, reviewer sign-off and AI drafting for reports and templates."""

__version__ = "0.1.0"
