# Import all the models, so that Base has them before being imported by Alembic
from hall.db.base_class import Base  # noqa
from hall.models.chat_room import ChatRoom  # noqa
from hall.models.message import Message  # noqa
from hall.models.active_user import ActiveUser  # noqa

# Make sure all models are imported before initializing Base.metadata
# This is required for Alembic to detect all models
