from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, PositiveInt


# ---------------------------------------------------------------------------
# Reusable coercions
# ---------------------------------------------------------------------------

def _coerce_bool(v: object) -> object:
    if isinstance(v, str):
        return v.lower() in ("true", "1", "yes")
    return v


def _coerce_id_list(v: object) -> object:
    # Platform user ids are often written as bare numbers in config files
    if isinstance(v, (list, tuple, set)):
        return [str(item) for item in v]
    return v


CoercedBool = Annotated[bool, BeforeValidator(_coerce_bool)]
UserIdList = Annotated[list[str] | None, BeforeValidator(_coerce_id_list)]


# ---------------------------------------------------------------------------
# Base for every adapter instance block; unknown keys are a validation error
# ---------------------------------------------------------------------------

class ChannelAdapterConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled:          CoercedBool = True
    allowed_users:    UserIdList  = None   # None / [] = everyone allowed
    notify_on_stop:   CoercedBool = True   # emit "disconnected" from stop()
    typing_indicator: CoercedBool = True


# ---------------------------------------------------------------------------
# Per-platform config models
# ---------------------------------------------------------------------------

class TelegramConfig(ChannelAdapterConfig):
    bot_token:          str
    parse_mode:         Literal["Markdown", "MarkdownV2", "HTML"] = "Markdown"
    max_message_length: PositiveInt                               = 4096
