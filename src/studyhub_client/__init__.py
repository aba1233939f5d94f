"""
StudyHub Client - resilient async access to the StudyHub document-sharing API.

Authenticated requests, timeouts, normalized errors and transparent access
token refresh, plus a small command line tool.
"""

__version__ = "1.0.0"
