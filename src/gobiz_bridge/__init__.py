"""
GoBiz login → per-user session cache → rate-paced journal queries

An async bridge that logs in to the GoBiz merchant platform on behalf of a
user, keeps the resulting credentials in memory, and queries transaction
journals with transparent token refresh.
"""

__version__ = "0.1.0"
