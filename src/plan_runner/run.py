# run.py
# Entry point. Config and wiring only: no logic lives here.
#
# Host and port come from PLAN_RUNNER_HOST / PLAN_RUNNER_PORT; model and
# cplace credentials from the variables documented in config.py.

from plan_runner.config import get_settings
from plan_runner.server import run_server


def main() -> None:
    settings = get_settings()
    run_server(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
