import json
import logging
import sys
from argparse import ArgumentDefaultsHelpFormatter, ArgumentParser

from wcpan.logging import ConfigBuilder

from .client import create_client
from .settings import load_from_path


_L = logging.getLogger(__name__)


class Probe:
    """Logs in to the configured daemon and reports what it speaks."""

    def __init__(self, args: list[str]) -> None:
        from logging.config import dictConfig

        kwargs = _parse_args(args)
        self._cfg = load_from_path(kwargs.settings)
        dictConfig(
            ConfigBuilder(path=self._cfg.log_path, rotate=True)
            .add("qbremote", level="D")
            .add("aiohttp", level="I")
            .to_dict()
        )

    async def __call__(self) -> int:
        return await self._guard()

    async def _guard(self) -> int:
        try:
            return await self._main()
        except Exception:
            _L.exception("probe failed")
        return 1

    async def _main(self) -> int:
        async with create_client(self._cfg.server) as client:
            capability = await client.ensure_detected()
            daemon_version = await client.get_qbittorrent_version()

        json.dump(
            {
                "generation": capability.generation.name,
                "version": str(capability.version),
                "qbittorrent": daemon_version,
            },
            sys.stdout,
        )
        sys.stdout.write("\n")
        return 0


def run() -> None:
    import asyncio

    main = Probe(sys.argv)
    sys.exit(asyncio.run(main()))


def _parse_args(args: list[str]):
    parser = ArgumentParser(
        prog="qbremote", formatter_class=ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "-s", "--settings", type=str, required=True, help="settings file name"
    )
    kwargs = parser.parse_args(args[1:])
    return kwargs
