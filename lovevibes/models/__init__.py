# Import all models here so Alembic can discover them.

from lovevibes.models.user import User  # noqa: F401
from lovevibes.models.swipe import Swipe  # noqa: F401
from lovevibes.models.match import Match  # noqa: F401
from lovevibes.models.transaction import Transaction  # noqa: F401
from lovevibes.models.webhook_event import WebhookEvent  # noqa: F401
from lovevibes.models.audit import AuditEvent  # noqa: F401
