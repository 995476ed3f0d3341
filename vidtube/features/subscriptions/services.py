from sqlalchemy.exc import IntegrityError

from vidtube.core.errors import InvalidArgumentError, NotFoundError
from vidtube.db.repositories.subscriptions import SubscriptionRepository
from vidtube.db.repositories.users import UserRepository
from vidtube.features.subscriptions.schemas import SubscriptionStateOut


class SubscriptionService:
    """Abonnements entre utilisateurs : un appel s'abonne, le suivant se désabonne."""

    def __init__(self, *, repo: SubscriptionRepository, user_repo: UserRepository):
        self.repo = repo
        self.users = user_repo

    def toggle(self, *, subscriber_id: int, channel_id: int) -> SubscriptionStateOut:
        if subscriber_id == channel_id:
            raise InvalidArgumentError("Cannot subscribe to your own channel")
        if not self.users.get(channel_id):
            raise NotFoundError("Channel does not exist")

        existing = self.repo.get_pair(subscriber_id, channel_id)
        if existing:
            self.repo.delete(existing)
            return SubscriptionStateOut(channel_id=channel_id, subscribed=False)

        try:
            self.repo.create(subscriber_id=subscriber_id, channel_id=channel_id)
        except IntegrityError:
            # abonnement créé en parallèle : l'état voulu est atteint
            self.repo.rollback()
        return SubscriptionStateOut(channel_id=channel_id, subscribed=True)
