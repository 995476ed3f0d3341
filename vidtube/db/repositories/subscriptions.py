from typing import Optional
from sqlmodel import select, func

from vidtube.db.repositories.base import BaseRepository
from vidtube.db.models.subscriptions import Subscription


class SubscriptionRepository(BaseRepository[Subscription]):
    model = Subscription

    def get_pair(self, subscriber_id: int, channel_id: int) -> Optional[Subscription]:
        return self.session.exec(
            select(self.model)
            .where(self.model.subscriber_id == subscriber_id)
            .where(self.model.channel_id == channel_id)
        ).first()

    def count_subscribers(self, channel_id: int) -> int:
        return self.session.exec(
            select(func.count(self.model.id)).where(self.model.channel_id == channel_id)
        ).one()

    def count_subscribed_to(self, subscriber_id: int) -> int:
        return self.session.exec(
            select(func.count(self.model.id)).where(self.model.subscriber_id == subscriber_id)
        ).one()
