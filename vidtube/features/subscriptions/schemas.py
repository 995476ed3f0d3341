from pydantic import BaseModel


class SubscriptionStateOut(BaseModel):
    channel_id: int
    subscribed: bool
