"""
Model package.

IMPORTANT (SQLModel metadata):
- `init_db()` and the test fixtures call `SQLModel.metadata.create_all`,
  which only sees table models that have been imported.
- This module must import every SQLModel `table=True` model to register it.
"""

# Import table models so SQLModel registers them in metadata.
from app.user.models import User, UserAuditEntry  # noqa: F401
