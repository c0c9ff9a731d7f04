import os


def get_env(env: str, default: str | None = None) -> str | None:
    value = os.environ.get(env)
    if value is None or not value.strip():
        return default
    return value.strip()


def get_data_path() -> str:
    """Directory holding config.{json,yaml,toml}; ``$GATEWAY_DATA_PATH`` or ``data``."""
    return get_env('GATEWAY_DATA_PATH', 'data')


def get_log_dir() -> str:
    return get_env('GATEWAY_LOG_DIR', 'logs')
