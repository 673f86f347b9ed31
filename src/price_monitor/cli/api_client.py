"""CLI client for the price monitor HTTP API.

Usage:
  price-monitor-client health
  price-monitor-client monitor start u1 AAPL MSFT
  price-monitor-client positions create u1 AAPL 150 10 --upper 170 --lower 130
  price-monitor-client alerts list u1
  price-monitor-client scheduler stats
"""
import argparse
import json
import sys

import httpx


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def _show(r: httpx.Response) -> int:
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_health(client: httpx.Client, _: argparse.Namespace) -> int:
    return _show(client.get("/"))


def cmd_status(client: httpx.Client, _: argparse.Namespace) -> int:
    return _show(client.get("/status"))


def cmd_quote(client: httpx.Client, args: argparse.Namespace) -> int:
    if len(args.tickers) == 1:
        return _show(client.get(f"/quotes/{args.tickers[0]}"))
    return _show(client.get("/quotes", params={"tickers": ",".join(args.tickers)}))


def cmd_monitor_start(client: httpx.Client, args: argparse.Namespace) -> int:
    return _show(client.post("/monitoring/start", json={"userId": args.user_id, "tickers": args.tickers}))


def cmd_monitor_stop(client: httpx.Client, args: argparse.Namespace) -> int:
    return _show(client.post("/monitoring/stop", json={"userId": args.user_id}))


def cmd_portfolio_get(client: httpx.Client, args: argparse.Namespace) -> int:
    return _show(client.get("/portfolio", params={"userId": args.user_id}))


def cmd_portfolio_set(client: httpx.Client, args: argparse.Namespace) -> int:
    body = {"userId": args.user_id, "tickers": args.tickers, "action": args.action}
    return _show(client.post("/portfolio", json=body))


def cmd_portfolio_remove(client: httpx.Client, args: argparse.Namespace) -> int:
    return _show(client.delete("/portfolio", params={"userId": args.user_id}))


def cmd_positions_list(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/positions", params={"userId": args.user_id})
    r.raise_for_status()
    data = r.json()
    print(f"Found {data['count']} positions for {args.user_id}")
    print_json(data["data"])
    return 0


def cmd_positions_create(client: httpx.Client, args: argparse.Namespace) -> int:
    body = {
        "userId": args.user_id,
        "historicalData": {"ticker": args.ticker, "price": args.price, "quantity": args.quantity},
        "upperThreshold": args.upper,
        "lowerThreshold": args.lower,
    }
    return _show(client.post("/positions", json=body))


def cmd_positions_thresholds(client: httpx.Client, args: argparse.Namespace) -> int:
    body = {"positionId": args.position_id, "upperThreshold": args.upper, "lowerThreshold": args.lower}
    return _show(client.put("/positions", json=body))


def cmd_positions_delete(client: httpx.Client, args: argparse.Namespace) -> int:
    return _show(client.delete("/positions", params={"positionId": args.position_id}))


def cmd_alerts_list(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/positions/alerts", params={"userId": args.user_id})
    r.raise_for_status()
    data = r.json()
    print(f"{data['count']} alerts ({data['unreadCount']} unread) for {args.user_id}")
    print_json(data["data"][: args.head] if args.head else data["data"])
    return 0


def cmd_alerts_read(client: httpx.Client, args: argparse.Namespace) -> int:
    return _show(client.put("/positions/alerts", json={"alertId": args.alert_id}))


def cmd_scheduler_status(client: httpx.Client, _: argparse.Namespace) -> int:
    return _show(client.get("/scheduler", params={"action": "status"}))


def cmd_scheduler_stats(client: httpx.Client, _: argparse.Namespace) -> int:
    return _show(client.get("/scheduler", params={"action": "stats"}))


def cmd_scheduler_start(client: httpx.Client, _: argparse.Namespace) -> int:
    return _show(client.post("/scheduler"))


def cmd_scheduler_stop(client: httpx.Client, _: argparse.Namespace) -> int:
    return _show(client.post("/scheduler/stop"))


def cmd_scheduler_check(client: httpx.Client, args: argparse.Namespace) -> int:
    return _show(client.post("/scheduler/check", json={"tickers": args.tickers}))


def cmd_scheduler_config(client: httpx.Client, args: argparse.Namespace) -> int:
    body = {
        "priceCheckInterval": args.price_check_interval,
        "healthCheckInterval": args.health_check_interval,
        "batchSize": args.batch_size,
        "batchDelay": args.batch_delay,
    }
    return _show(client.patch("/scheduler/config", json={k: v for k, v in body.items() if v is not None}))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Call the price monitor API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8001",
        help="API base URL (default: http://localhost:8001)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Request timeout in seconds (default: 30)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("health", help="GET /")
    subparsers.add_parser("status", help="GET /status")
    p = subparsers.add_parser("quote", help="GET /quotes/{ticker} or /quotes?tickers=")
    p.add_argument("tickers", nargs="+", help="Tickers (e.g. AAPL MSFT)")

    # monitoring
    monitor = subparsers.add_parser("monitor", help="Monitoring routes (/monitoring)")
    monitor_sub = monitor.add_subparsers(dest="monitor_cmd", required=True)
    p = monitor_sub.add_parser("start", help="POST /monitoring/start")
    p.add_argument("user_id")
    p.add_argument("tickers", nargs="+")
    p = monitor_sub.add_parser("stop", help="POST /monitoring/stop")
    p.add_argument("user_id")

    # portfolio
    portfolio = subparsers.add_parser("portfolio", help="Portfolio routes (/portfolio)")
    portfolio_sub = portfolio.add_subparsers(dest="portfolio_cmd", required=True)
    p = portfolio_sub.add_parser("get", help="GET /portfolio")
    p.add_argument("user_id")
    p = portfolio_sub.add_parser("set", help="POST /portfolio")
    p.add_argument("user_id")
    p.add_argument("tickers", nargs="+")
    p.add_argument("--action", choices=["add", "update"], default="add")
    p = portfolio_sub.add_parser("remove", help="DELETE /portfolio")
    p.add_argument("user_id")

    # positions
    positions = subparsers.add_parser("positions", help="Position routes (/positions)")
    positions_sub = positions.add_subparsers(dest="positions_cmd", required=True)
    p = positions_sub.add_parser("list", help="GET /positions")
    p.add_argument("user_id")
    p = positions_sub.add_parser("create", help="POST /positions")
    p.add_argument("user_id")
    p.add_argument("ticker")
    p.add_argument("price", type=float)
    p.add_argument("quantity", type=float)
    p.add_argument("--upper", type=float, default=None, help="Upper threshold")
    p.add_argument("--lower", type=float, default=None, help="Lower threshold")
    p = positions_sub.add_parser("thresholds", help="PUT /positions")
    p.add_argument("position_id")
    p.add_argument("--upper", type=float, default=None)
    p.add_argument("--lower", type=float, default=None)
    p = positions_sub.add_parser("delete", help="DELETE /positions")
    p.add_argument("position_id")

    # alerts
    alerts = subparsers.add_parser("alerts", help="Alert routes (/positions/alerts)")
    alerts_sub = alerts.add_subparsers(dest="alerts_cmd", required=True)
    p = alerts_sub.add_parser("list", help="GET /positions/alerts")
    p.add_argument("user_id")
    p.add_argument("--head", type=int, default=0, help="Show only first N (0 = all)")
    p = alerts_sub.add_parser("read", help="PUT /positions/alerts")
    p.add_argument("alert_id")

    # scheduler
    scheduler = subparsers.add_parser("scheduler", help="Scheduler routes (/scheduler)")
    scheduler_sub = scheduler.add_subparsers(dest="scheduler_cmd", required=True)
    scheduler_sub.add_parser("status", help="GET /scheduler?action=status")
    scheduler_sub.add_parser("stats", help="GET /scheduler?action=stats")
    scheduler_sub.add_parser("start", help="POST /scheduler")
    scheduler_sub.add_parser("stop", help="POST /scheduler/stop")
    p = scheduler_sub.add_parser("check", help="POST /scheduler/check")
    p.add_argument("tickers", nargs="+")
    p = scheduler_sub.add_parser("config", help="PATCH /scheduler/config")
    p.add_argument("--price-check-interval", type=float, default=None, metavar="SECS")
    p.add_argument("--health-check-interval", type=float, default=None, metavar="SECS")
    p.add_argument("--batch-size", type=int, default=None)
    p.add_argument("--batch-delay", type=float, default=None, metavar="SECS")
    return parser


HANDLERS = {
    "health": cmd_health,
    "status": cmd_status,
    "quote": cmd_quote,
    "monitor": {"start": cmd_monitor_start, "stop": cmd_monitor_stop},
    "portfolio": {
        "get": cmd_portfolio_get,
        "set": cmd_portfolio_set,
        "remove": cmd_portfolio_remove,
    },
    "positions": {
        "list": cmd_positions_list,
        "create": cmd_positions_create,
        "thresholds": cmd_positions_thresholds,
        "delete": cmd_positions_delete,
    },
    "alerts": {"list": cmd_alerts_list, "read": cmd_alerts_read},
    "scheduler": {
        "status": cmd_scheduler_status,
        "stats": cmd_scheduler_stats,
        "start": cmd_scheduler_start,
        "stop": cmd_scheduler_stop,
        "check": cmd_scheduler_check,
        "config": cmd_scheduler_config,
    },
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    handler = HANDLERS[args.command]
    if isinstance(handler, dict):
        handler = handler[getattr(args, f"{args.command}_cmd")]

    try:
        with httpx.Client(base_url=args.base_url.rstrip("/"), timeout=args.timeout) as client:
            return handler(client, args)
    except httpx.HTTPStatusError as e:
        print(f"HTTP error: {e.response.status_code}", file=sys.stderr)
        if e.response.content:
            try:
                print(e.response.json(), file=sys.stderr)
            except ValueError:
                print(e.response.text, file=sys.stderr)
        return 1
    except httpx.RequestError as e:
        print(f"Request error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
