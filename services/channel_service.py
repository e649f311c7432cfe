"""
Channel Profile Resolution.

A channel is a user seen from the outside: their public fields plus how many
users subscribe to them, how many channels they subscribe to, and whether the
requesting viewer is one of their subscribers.

The lookup is one statement. Both counts are correlated scalar subqueries over
the subscription edges and the viewer flag is an `EXISTS`, so the database
does the aggregation and a missing user simply yields no row.

Key Components:
- `build_channel_profile_query`: builds the statement for a username and an
  optional viewer. Pure, so it can be inspected without a database.
- `ChannelProfileResolver`: runs the statement on a session and shapes the row
  into a `ChannelProfile`. Only public fields are projected; the password hash
  and refresh token never leave the table.
"""

import logging
from typing import Optional
from sqlalchemy import exists, false, func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import ChannelNotFoundError, InvalidArgumentError, UpstreamFailureError
from core.models import ChannelProfile, Subscription, User

logger = logging.getLogger(__name__)


def normalize_username(username: str) -> str:
    if not isinstance(username, str) or not username.strip():
        raise InvalidArgumentError("username", username, "username is missing")
    return username.strip().lower()


def build_channel_profile_query(username: str, viewer_id: Optional[str] = None):
    """Select the user row with subscriber counts and the viewer flag"""
    subscribers_count = (
        select(func.count(col(Subscription.id)))
        .where(col(Subscription.channel_id) == col(User.id))
        .scalar_subquery()
    )
    subscribed_to_count = (
        select(func.count(col(Subscription.id)))
        .where(col(Subscription.subscriber_id) == col(User.id))
        .scalar_subquery()
    )

    if viewer_id:
        is_subscribed = exists().where(
            col(Subscription.channel_id) == col(User.id),
            col(Subscription.subscriber_id) == viewer_id,
        )
    else:
        # Anonymous viewers are never subscribed
        is_subscribed = false()

    return select(
        User,
        subscribers_count.label("subscribers_count"),
        subscribed_to_count.label("channels_subscribed_to_count"),
        is_subscribed.label("is_subscribed"),
    ).where(col(User.username) == normalize_username(username))


class ChannelProfileResolver:
    """Resolves a username to its public channel profile"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve_channel_profile(
        self, username: str, viewer_id: Optional[str] = None
    ) -> ChannelProfile:
        """
        Return the channel profile for `username` as seen by `viewer_id`.

        Raises ChannelNotFoundError when no user has that username.
        """
        statement = build_channel_profile_query(username, viewer_id)

        try:
            result = await self.session.exec(statement)
            row = result.first()
        except SQLAlchemyError as e:
            raise UpstreamFailureError("resolve_channel_profile", str(e)) from e

        if row is None:
            raise ChannelNotFoundError(username)

        user, subscribers_count, subscribed_to_count, is_subscribed = row
        logger.debug(
            f"Resolved channel @{user.username}: {subscribers_count} subscribers"
        )

        return ChannelProfile(
            id=user.id,
            fullname=user.fullname,
            username=user.username,
            email=user.email,
            avatar=user.avatar,
            cover_image=user.cover_image,
            subscribers_count=subscribers_count or 0,
            channels_subscribed_to_count=subscribed_to_count or 0,
            is_subscribed=bool(is_subscribed),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
