import asyncio
import logging
import sys

import uvicorn

from evm_workload.config import RunConfig, load_config
from evm_workload.constants import RunState
from evm_workload.errors import ConfigError

log = logging.getLogger("evm_workload")


def main():
    try:
        server = load_config().get("server", {})
    except ConfigError as e:
        sys.exit(f"Invalid configuration: {e}")
    uvicorn.run("evm_workload.app:app", host=server.get("host", "0.0.0.0"), port=server.get("port", 8000), lifespan="on")


def run_once() -> int:
    """Single run from config.toml + environment; exit 0 on COMPLETE, 1 otherwise."""
    from evm_workload.logging_config import setup_logging
    from evm_workload.workload import run_workload

    setup_logging()
    try:
        conf = RunConfig.from_config(load_config())
    except ConfigError as e:
        log.error("Invalid configuration: %s", e)
        return 1
    report = asyncio.run(run_workload(conf))
    print(f"Success: {report.stats.success}/{report.stats.total}  Failed: {report.stats.failure}/{report.stats.total}")
    return 0 if report.state == RunState.COMPLETE else 1


def run_once_main():
    sys.exit(run_once())


if __name__ == "__main__":
    main()
