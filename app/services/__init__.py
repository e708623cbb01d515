from app.services.conversation_participant_service import (
    ConversationParticipantService,
)
from app.services.message_service import MessageService
from app.services.provider_service import ProviderService
from app.services.rating_aggregate_service import RatingAggregateService
from app.services.rating_service import RatingService
from app.services.user_service import UserService

__all__ = [
    "ConversationParticipantService",
    "MessageService",
    "ProviderService",
    "RatingAggregateService",
    "RatingService",
    "UserService",
]
