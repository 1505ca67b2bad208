from __future__ import annotations

import argparse
import json
import sys

from nodemesh import __version__


def _valid_port(value: str) -> int:
    """Validate port is an integer in range 1-65535."""
    port = int(value)
    if port < 1 or port > 65535:
        raise argparse.ArgumentTypeError(f"port must be 1-65535, got {port}")
    return port


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="nodemesh",
        description="NodeMesh -- conversational request router",
    )
    subparsers = parser.add_subparsers(dest="command")

    start_parser = subparsers.add_parser("start", help="Start the NodeMesh API server")
    start_parser.add_argument(
        "--port", type=_valid_port, default=3001, help="Port to run on (default: 3001)"
    )
    start_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )

    ask_parser = subparsers.add_parser("ask", help="Route one message and print the reply")
    ask_parser.add_argument("message", nargs="+", help="The message to send")
    ask_parser.add_argument("--session", default="", help="Session id (default: shared 'default' session)")
    ask_parser.add_argument("--json", dest="output_json", action="store_true", help="Output raw JSON")

    args = parser.parse_args()

    if args.command == "start":
        if args.host not in ("127.0.0.1", "localhost", "::1"):
            print("Warning: binding to non-loopback address exposes the router to the network", file=sys.stderr)
        _start_server(host=args.host, port=args.port)
    elif args.command == "ask":
        _ask(" ".join(args.message), session_id=args.session, output_json=args.output_json)
    else:
        parser.print_help()
        sys.exit(1)


def _start_server(host: str, port: int) -> None:
    import uvicorn

    print()
    print(f"  NodeMesh v{__version__}")
    print(f"  Chat:      POST http://{host}:{port}/chat")
    print(f"  API docs:  http://{host}:{port}/docs")
    print()

    uvicorn.run("nodemesh.api:app", host=host, port=port, log_level="warning")


def _ask(message: str, session_id: str = "", output_json: bool = False) -> None:
    from nodemesh.intelligence.chat import Dispatcher, EmptyMessageError

    try:
        result = Dispatcher.from_config().handle_chat_request(message, session_id)
    except EmptyMessageError:
        print("Error: message required", file=sys.stderr)
        sys.exit(2)

    if output_json:
        print(json.dumps(result.model_dump(by_alias=True), indent=2, ensure_ascii=False))
        return

    print(f"[{result.intent}]")
    print(result.reply)


if __name__ == "__main__":
    main()
