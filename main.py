import argparse
import asyncio
import importlib
import pkgutil
import sys
from pathlib import Path

from pydantic import ValidationError

import services.error  # installs global uncaught-exception hook
import services.logger as log
import services.util as u
import services.config_io as config_io
from services.hub import Hub, HubEvent, hub
from services.message import InboundMessage, OutboundMessage

import drivers as _drivers_pkg

l = log.get_logger()


def _load_all_drivers() -> None:
    """Import every module in the ``drivers/`` package.

    Each driver module calls ``drivers.registry.register()`` at import time,
    so this one pass is enough to populate the registry.  The ``registry``
    module itself is skipped to avoid a circular bootstrap.
    """
    for _, mod_name, _ in pkgutil.iter_modules(_drivers_pkg.__path__):
        if mod_name != "registry":
            importlib.import_module(f"drivers.{mod_name}")


def cmd_convert(src: str, dst: str) -> int:
    """Rewrite config *src* in the format implied by *dst*'s extension; returns an exit code."""
    src_path, dst_path = Path(src), Path(dst)

    if not src_path.is_file():
        print(f"Error: source file not found: {src_path}", file=sys.stderr)
        return 1

    try:
        config_io.save_config(config_io.load_config(src_path), dst_path)
    except Exception as e:
        print(f"Error converting {src_path} → {dst_path}: {e}", file=sys.stderr)
        return 1

    print(f"Converted {src_path} → {dst_path}")
    return 0


def build_drivers(raw: dict, hub: Hub) -> list | None:
    """Validate every instance block and instantiate its driver.

    Returns ``None`` if any block fails validation.
    """
    from drivers.registry import all_drivers

    registry = all_drivers()
    sections = config_io.platform_sections(raw)
    built = []
    config_ok = True

    for platform in sections:
        if platform not in registry:
            l.warning(f"Config section '{platform}' has no matching driver, ignoring")

    for platform, (config_cls, driver_cls) in registry.items():
        for inst_id, inst_raw in sections.get(platform, {}).items():
            try:
                cfg = config_cls.model_validate(inst_raw)
            except ValidationError as exc:
                l.critical(f"Config error in {platform}.{inst_id}:\n{exc}")
                config_ok = False
                continue
            built.append(driver_cls(inst_id, cfg, hub))
            l.info(f"Registered driver: {platform}/{inst_id}")

    return built if config_ok else None


def install_host_handlers(hub: Hub, echo: bool) -> None:
    """Minimal host: log lifecycle and traffic, optionally echo messages back."""

    async def on_message(instance_id: str, msg: InboundMessage):
        kinds = ",".join(a.type for a in msg.attachments) or "-"
        l.info(
            f"[{instance_id}] {msg.user.display_name} ({msg.user.id}) in {msg.channel_id}: "
            f"{msg.content!r} attachments={kinds}"
        )
        if echo and msg.content:
            native_id = getattr(msg.raw, "message_id", None)
            reply = OutboundMessage(
                channel_id=msg.channel_id,
                content=msg.content,
                reply_to_id=str(native_id) if native_id is not None else None,
            )
            try:
                await hub.send(instance_id, reply)
            except Exception as e:
                l.error(f"[{instance_id}] echo failed: {e}")

    hub.subscribe(HubEvent.MESSAGE, on_message)
    hub.subscribe(HubEvent.ERROR, lambda inst, err: l.error(f"[{inst}] error: {err}"))
    hub.subscribe(HubEvent.CONNECTED, lambda inst: l.info(f"[{inst}] connected"))
    hub.subscribe(HubEvent.DISCONNECTED, lambda inst: l.info(f"[{inst}] disconnected"))


async def main(echo: bool = False):
    _load_all_drivers()

    l.info("Channel gateway starting…")

    config_path = config_io.find_config(Path(u.get_data_path()))
    if config_path is None:
        l.critical(f"No config file found in: {u.get_data_path()} (tried config.json / .yaml / .toml)")
        return

    l.info(f"Loading config from: {config_path}")
    raw: dict = config_io.load_config(config_path)

    hub.load_sensitive_values(raw)
    install_host_handlers(hub, echo)

    drivers = build_drivers(raw, hub)
    if drivers is None:
        return
    if not drivers:
        l.error("No drivers configured, nothing to do, exiting.")
        return

    results = await asyncio.gather(*(d.start() for d in drivers), return_exceptions=True)
    for drv, result in zip(drivers, results):
        if isinstance(result, Exception):
            l.error(f"Driver '{drv.label}' failed to start: {result}")

    try:
        await asyncio.Event().wait()  # keep running until cancelled
    except asyncio.CancelledError:
        l.info("Channel gateway shutting down…")
        raise
    finally:
        await asyncio.gather(*(d.stop() for d in drivers), return_exceptions=True)
        l.info("Channel gateway stopped.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(prog="channel-gateway", description="Multi-channel chat adapter gateway")
    parser.add_argument("--echo", action="store_true", help="Reply to every text message with its own content")
    subparsers = parser.add_subparsers(dest="command")

    conv = subparsers.add_parser("convert", help="Convert a config file between formats (json/yaml/toml)")
    conv.add_argument("src", help="Source config file (e.g. config.json)")
    conv.add_argument("dst", help="Destination config file (e.g. config.yaml)")

    args = parser.parse_args()

    if args.command == "convert":
        sys.exit(cmd_convert(args.src, args.dst))

    try:
        asyncio.run(main(echo=args.echo))
    except KeyboardInterrupt:
        pass
