from app.models.conversation_participant import ConversationParticipant
from app.models.message import Message
from app.models.provider import Provider
from app.models.rating import Rating
from app.models.user import User

__all__ = [
    "ConversationParticipant",
    "Message",
    "Provider",
    "Rating",
    "User",
]
