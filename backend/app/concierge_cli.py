#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app.concierge_service import ConciergeService, ConciergeTurn  # noqa: E402
from backend.app.openai_async import close_async_client  # noqa: E402

EXIT_WORDS = {"exit", "quit"}


def _summary(turn: ConciergeTurn) -> list[str]:
    lines: list[str] = []
    if turn.weather is not None:
        w = turn.weather
        lines.append(f"  [weather] {w.location}: {w.temperature}°C, {w.description}, humidity {w.humidity}%")
    if turn.directions is not None:
        d = turn.directions
        lines.append(f"  [route] {d.distance} / {d.duration} to {d.end_address}")
        lines.extend(f"    - {step.instruction} ({step.distance})" for step in d.steps)
    for place in turn.places:
        lines.append(f"  [place] {place.name} ★{place.rating} · {place.distance} km · {place.address}")
    return lines


def _render(turn: ConciergeTurn, as_json: bool) -> str:
    if as_json:
        payload = {
            "reply": asdict(turn.reply),
            "weather": asdict(turn.weather) if turn.weather else None,
            "directions": asdict(turn.directions) if turn.directions else None,
            "places": [asdict(place) for place in turn.places],
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)
    return "\n".join([f"Sarah: {turn.reply.text}", *_summary(turn)])


async def _run(args: argparse.Namespace) -> None:
    service = ConciergeService()
    assistant = service.assistant(args.session)
    assistant.set_language(args.lang)
    profile_fields = {
        key: value for key, value in (("name", args.name), ("room_number", args.room)) if value
    }
    if profile_fields:
        assistant.update_guest_profile(profile_fields)

    try:
        if args.message:
            turn = await service.handle_message(args.session, " ".join(args.message))
            print(_render(turn, args.json))
            return

        print("Type a question for the concierge ('exit' to leave).")
        while True:
            try:
                line = input("> ").strip()
            except EOFError:
                break
            if not line:
                continue
            if line.lower() in EXIT_WORDS:
                break
            turn = await service.handle_message(args.session, line)
            print(_render(turn, args.json))
    finally:
        await service.aclose()
        await close_async_client()


def main() -> None:
    parser = argparse.ArgumentParser(description="Chat with the hotel concierge from a terminal.")
    parser.add_argument("message", nargs="*", help="Ask a single question and exit")
    parser.add_argument("--session", default="cli", help="Session id (selects the stored guest profile)")
    parser.add_argument("--lang", choices=["en", "hi"], default="en", help="Conversation language")
    parser.add_argument("--name", help="Guest name to store on the profile")
    parser.add_argument("--room", help="Room number to store on the profile")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    args = parser.parse_args()

    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
