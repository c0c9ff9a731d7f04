import secrets

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-"


def _random_token(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def gen_message_id() -> str:
    """Return a compact, URL-safe message id such as ``msg_Xy3...``."""
    return f"msg_{_random_token(16)}"
