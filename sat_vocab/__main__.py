"""CLI entry point for sat-vocab.

Usage:
  python -m sat_vocab serve [--port PORT] [--host HOST]
  python -m sat_vocab stop
  python -m sat_vocab restart [--port PORT]
  python -m sat_vocab status
  python -m sat_vocab define WORD [--concise]
  python -m sat_vocab passage
"""
from __future__ import annotations

import asyncio
import os
import signal
import sys
from pathlib import Path

PID_FILE = Path(__file__).resolve().parent.parent / ".server.pid"


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "stop":
        _stop()
    elif command == "restart":
        _restart(args[1:])
    elif command == "status":
        _status()
    elif command == "define":
        _define(args[1:])
    elif command == "passage":
        _passage()
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, stop, restart, status, define, passage")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _read_pid() -> int | None:
    """Read PID from file, return None if stale or missing."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        PID_FILE.unlink(missing_ok=True)
        return None


def _stop() -> bool:
    """Stop a running server. Returns True if a server was stopped."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return False
    try:
        os.kill(pid, signal.SIGTERM)
        print(f"Stopped server (PID {pid}).")
        PID_FILE.unlink(missing_ok=True)
        return True
    except ProcessLookupError:
        print("Server was not running (stale PID file removed).")
        PID_FILE.unlink(missing_ok=True)
        return False


def _status():
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
    else:
        print(f"Server is running (PID {pid}).")


def _restart(args: list[str]):
    import time
    _stop()
    time.sleep(1)
    _serve(args)


def _serve(args: list[str]):
    import uvicorn

    existing = _read_pid()
    if existing is not None:
        print(f"Server already running (PID {existing}). Use 'restart' or 'stop' first.")
        sys.exit(1)

    port = int(_parse_flag(args, "--port", "8766"))
    host = _parse_flag(args, "--host", "127.0.0.1")
    PID_FILE.write_text(str(os.getpid()))

    print(f"Starting SAT Vocab on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    try:
        uvicorn.run(
            "sat_vocab.app:app",
            host=host,
            port=port,
            reload=False,
            timeout_graceful_shutdown=5,
        )
    finally:
        PID_FILE.unlink(missing_ok=True)


def _define(args: list[str]):
    words = [a for a in args if not a.startswith("--")]
    if not words:
        print("Usage: python -m sat_vocab define WORD [--concise]")
        sys.exit(1)
    concise = "--concise" in args

    from sat_vocab.config import load_settings
    from sat_vocab.dictionary import DictionaryClient
    from sat_vocab.providers.registry import build_llm
    from sat_vocab.resolver import DefinitionResolver

    settings = load_settings()
    resolver = DefinitionResolver(
        DictionaryClient(settings.dictionary_url, timeout=settings.lookup_timeout_seconds),
        build_llm(settings),
        llm_timeout_seconds=settings.lookup_timeout_seconds,
    )
    definition = asyncio.run(resolver.resolve(words[0], concise=concise))
    if definition is None:
        print(f"No definition found for {words[0]!r}.")
        sys.exit(1)

    header = definition.word
    if definition.phonetic:
        header += f"  {definition.phonetic}"
    print(header)
    for meaning in definition.meanings:
        print(f"\n  {meaning.part_of_speech}")
        for i, text in enumerate(meaning.definitions, 1):
            print(f"    {i}. {text}")


def _passage():
    from sat_vocab.config import load_settings
    from sat_vocab.passages import PassageGenerationError, PassageGenerator, fallback_passage
    from sat_vocab.providers.registry import build_llm

    settings = load_settings()
    generator = PassageGenerator(build_llm(settings))
    try:
        print(asyncio.run(generator.generate()))
    except PassageGenerationError as e:
        print(f"Passage generation failed ({e}); showing a stored passage instead.\n")
        print(fallback_passage())


if __name__ == "__main__":
    main()
