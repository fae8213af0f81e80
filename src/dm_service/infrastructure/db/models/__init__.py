"""Import all models so Alembic can discover them via Base.metadata."""
from dm_service.infrastructure.db.models.conversation import ConversationModel
from dm_service.infrastructure.db.models.message import MessageModel
from dm_service.infrastructure.db.models.outbox import OutboxMessageModel
from dm_service.infrastructure.db.models.profile import ProfileModel
from dm_service.infrastructure.db.models.read_state import ReadStateModel
from dm_service.infrastructure.db.models.user_status import UserStatusModel

__all__ = [
    "ConversationModel",
    "MessageModel",
    "OutboxMessageModel",
    "ProfileModel",
    "ReadStateModel",
    "UserStatusModel",
]
