from typing import Any

import services.logger as log
from services.auth import Allowlist
from services.message import ChannelType, ChannelUser

l = log.get_logger()


def display_name(sender: Any) -> str:
    first = getattr(sender, "first_name", None) or ""
    last = getattr(sender, "last_name", None)
    return f"{first} {last}" if last else first


def map_user(channel_type: ChannelType, sender: Any, allowlist: Allowlist) -> ChannelUser | None:
    """Build a ChannelUser from platform sender info.

    Returns ``None`` when the event carries no sender or the sender is not
    on the allowlist; callers treat ``None`` as "drop this event".
    """
    if sender is None:
        return None

    native_id = str(sender.id)
    if not allowlist.is_allowed(native_id):
        l.warning(f"{channel_type} user {native_id} not in allowlist, dropping event")
        return None

    return ChannelUser(
        id=f"{channel_type}:{native_id}",
        display_name=display_name(sender),
        channel_type=channel_type,
        channel_specific_id=native_id,
        metadata={
            "username": getattr(sender, "username", None),
            "language_code": getattr(sender, "language_code", None),
        },
    )
