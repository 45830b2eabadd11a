from __future__ import annotations

import argparse

from prometheus_app.config import get_settings
from prometheus_app.server import run


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Demo device API with Prometheus metrics")
    parser.add_argument("--host", default=settings.host, help="Interface both listeners bind to")
    parser.add_argument("--api-port", type=int, default=settings.api_port, help="Device API port")
    parser.add_argument("--metrics-port", type=int, default=settings.metrics_port, help="Metrics scrape port")
    parser.add_argument("--log-level", default=settings.log_level, help="Root log level")
    parser.add_argument("--delay", action=argparse.BooleanOptionalAction, default=settings.enable_delay, help="Inject random handler latency")
    parser.add_argument("--delay-seed", type=int, default=settings.delay_seed, help="Seed for the latency generator")
    args = parser.parse_args()

    run(
        settings.model_copy(
            update={
                "host": args.host,
                "api_port": args.api_port,
                "metrics_port": args.metrics_port,
                "log_level": args.log_level,
                "enable_delay": bool(args.delay),
                "delay_seed": args.delay_seed,
            }
        )
    )


if __name__ == "__main__":
    main()
