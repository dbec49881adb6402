"""
Campus Placement Portal
Placement drives, applications with round-by-round tracking, and
email-verified student accounts.

Architecture:
- PostgreSQL (SQLite for local runs and tests): all structured data
- SMTP: verification codes
- DeepSeek AI: placement assistant chat only (not a database!)
"""

__version__ = "1.0.0"
