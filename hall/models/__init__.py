from hall.models.chat_room import ChatRoom
from hall.models.message import Message, MessageType
from hall.models.active_user import ActiveUser

__all__ = [
    "ChatRoom",
    "Message",
    "MessageType",
    "ActiveUser",
]
