from fastapi import APIRouter, Depends

from vidtube.api.v1.dependencies import get_current_user, get_subscription_service
from vidtube.db.models.users import User
from vidtube.features.subscriptions.schemas import SubscriptionStateOut
from vidtube.features.subscriptions.services import SubscriptionService

router = APIRouter(
    prefix="/subscriptions",
    tags=["subscriptions"],
    responses={404: {"description": "Not Found"}},
)

@router.post(
    "/c/{channel_id}",
    summary="S'abonner / se désabonner d'une chaîne",
    response_model=SubscriptionStateOut,
)
def toggle_subscription(
    channel_id: int,
    user: User = Depends(get_current_user),
    svc: SubscriptionService = Depends(get_subscription_service),
):
    return svc.toggle(subscriber_id=user.id, channel_id=channel_id)
