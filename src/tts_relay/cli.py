"""
Command-Line Interface for tts-relay.

Synthesizes one text through the same validator, engine selector and
provider adapters as the HTTP service, without running the server.

Usage Examples:
    # English via Google Translate
    tts-relay --text "Hello world" --out hello.mp3

    # Positional text (same as above)
    tts-relay "Hello world"

    # Japanese goes to VOICEVOX automatically
    tts-relay "こんにちは" --lang ja --speaker 1

    # Dry-run mode (validates and selects the engine, no network)
    tts-relay --text "Test" --lang ja --dry-run --json

Environment Variables:
    TTS_RELAY_SETTINGS: Settings file (default config/settings.yaml)
    TTS_RELAY_UPSTREAM_TIMEOUT_S: Provider timeout override
    TTS_RELAY_LOG_LEVEL: 1-4 or MINIMAL/NORMAL/VERBOSE/DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from tts_relay.core.config import load_settings_or_defaults
from tts_relay.core.errors import RelayError
from tts_relay.core.logging import configure_logging, error, get_logger, info, set_request_id
from tts_relay.services.relay_service import RelayService, audio_filename
from tts_relay.services.validators import SynthesisRequest, validate_request


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="tts-relay CLI (relay one text without the server)")

    parser.add_argument("text_pos", nargs="?", help="Text to synthesize (positional)")
    parser.add_argument("--text", help="Text to synthesize")
    parser.add_argument("--lang", help="Language code (default: en; 'ja' selects voicevox)")
    parser.add_argument("--engine", help="Engine override: google or voicevox")
    parser.add_argument("--speaker", help="VOICEVOX speaker id (default: 3)")
    parser.add_argument("--out", help="Output file (default: tts_<ms>.mp3)")

    parser.add_argument("--dry-run", action="store_true",
                        help="Validate and select the engine without calling a provider")
    parser.add_argument("--json", action="store_true",
                        help="Print JSON summary")

    return parser.parse_args(argv)


def _body_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Build the same JSON body the HTTP API accepts."""
    body: Dict[str, Any] = {"text": args.text or args.text_pos}
    if args.lang is not None:
        body["lang"] = args.lang
    if args.engine is not None:
        body["engine"] = args.engine
    if args.speaker is not None:
        body["speaker"] = args.speaker
    return body


def _emit(payload: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(payload)


async def _synthesize(service: RelayService, request: SynthesisRequest, out_path: Path) -> Dict[str, Any]:
    try:
        result = await service.dispatch(request)
    finally:
        await service.aclose()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(result.audio_bytes)
    return {
        "out": str(out_path),
        "engine": result.engine.value,
        "bytes": len(result.audio_bytes),
        "seconds": result.seconds,
    }


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Exit code (0 for success, 1 for a rejected or failed request).
    """
    args = _parse_args(argv)

    configure_logging()
    log = get_logger("tts-relay.cli")
    set_request_id(str(uuid4())[:12])

    settings = load_settings_or_defaults()
    service = RelayService(settings)
    config = service.config

    try:
        request = validate_request(_body_from_args(args), default_language=config.limits.default_language)
        engine = service.choose_engine(request)
    except RelayError as e:
        asyncio.run(service.aclose())
        _emit({"ok": False, "status": e.http_status, **e.to_dict()}, args.json)
        return 1

    if args.dry_run:
        asyncio.run(service.aclose())
        payload = {
            "ok": True,
            "dry_run": True,
            "engine": engine.value,
            "language": request.language,
            "speaker": request.speaker_id,
            "chars": len(request.text),
        }
        if not args.json:
            info(log, "dry_run", engine=engine.value, language=request.language)
        _emit(payload, args.json)
        print("DRY_RUN_OK")
        return 0

    out_path = Path(args.out or audio_filename())
    try:
        item = asyncio.run(_synthesize(service, request, out_path))
    except RelayError as e:
        _emit({"ok": False, "status": e.http_status, **e.to_dict()}, args.json)
        return 1
    except OSError as e:
        error(log, "write_failed", out=str(out_path), error=str(e))
        _emit({"ok": False, "error": "Cannot write output", "out": str(out_path), "detail": str(e)}, args.json)
        return 1

    _emit({"ok": True, "dry_run": False, **item}, args.json)
    print("CLI_OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
