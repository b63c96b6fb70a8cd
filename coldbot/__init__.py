"""
ColdBot — customer-support chat service.

Users sign in, ask questions answered by an external prediction endpoint,
browse and search their history and rate answers; administrators get usage
dashboards and a CSV export.
"""

__version__ = "1.0.0"
