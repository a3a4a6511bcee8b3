import asyncio

import pytest
from backend.app import assistant as assistant_module
from backend.app.concierge_service import ConciergeService, extract_destination
from backend.app.intents import Intent
from backend.app.profile_store import InMemoryProfileStore
from backend.app.settings import settings


@pytest.fixture
def service():
    return ConciergeService(store_factory=lambda session_id: InMemoryProfileStore())


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("How to get to India Gate?", "India Gate"),
        ("Show me directions towards Lotus Temple.", "Lotus Temple"),
        ("Book a taxi till Connaught Place!", "Connaught Place"),
        ("Taxi from the airport to the hotel to Red Fort", "Red Fort"),
        ("What's the best route?", None),
        ("Any plans for tomorrow?", None),
        ("route to ?", None),
        ("", None),
    ],
)
def test_extract_destination(message, expected):
    assert extract_destination(message) == expected


def test_weather_turn_attaches_snapshot(service):
    turn = asyncio.run(service.handle_message("guest-1", "What's the weather like?"))

    assert turn.reply.intent is Intent.WEATHER
    assert turn.weather is not None
    assert turn.weather.mock is True
    assert turn.weather.location == "New Delhi"
    assert turn.directions is None
    assert turn.places == []


def test_restaurant_turn_attaches_places(service):
    turn = asyncio.run(service.handle_message("guest-1", "Find me a restaurant"))

    assert turn.reply.intent is Intent.RESTAURANT
    assert [place.name for place in turn.places] == ["Spice Garden Restaurant", "Dragon Palace"]


def test_directions_turn_uses_extracted_destination(service):
    turn = asyncio.run(service.handle_message("guest-1", "How to get to India Gate?"))

    assert turn.reply.intent is Intent.DIRECTIONS
    assert turn.directions is not None
    assert turn.directions.end_address == "India Gate"


def test_directions_without_destination_skip_lookup(service):
    turn = asyncio.run(service.handle_message("guest-1", "Can you show me the route?"))

    assert turn.reply.intent is Intent.DIRECTIONS
    assert turn.reply.requires_action is True
    assert turn.directions is None


def test_general_turn_has_no_live_data(service):
    turn = asyncio.run(service.handle_message("guest-1", "hello"))

    assert turn.reply.requires_action is False
    assert turn.weather is None
    assert turn.directions is None
    assert turn.places == []


def test_sessions_are_isolated(service):
    service.assistant("a").update_guest_profile({"name": "Priya"})
    service.assistant("a").set_language("hi")

    assert service.assistant("b").guest_profile == {}
    assert service.assistant("b").language == "en"
    assert service.assistant("a").guest_profile == {"name": "Priya"}


def test_drop_session(service):
    service.assistant("a").update_guest_profile({"name": "Priya"})

    assert service.drop_session("a") is True
    assert service.drop_session("a") is False
    assert service.assistant("a").guest_profile == {}


def test_turns_in_one_session_are_serialized(service, monkeypatch):
    settings.OPENAI_API_KEY = "test-key"

    async def slow_post_json(path, payload, timeout=None):  # noqa: ARG001
        last = payload["messages"][-1]["content"]
        await asyncio.sleep(0.05 if last == "first" else 0)
        return {"choices": [{"message": {"content": f"re: {last}"}}]}

    monkeypatch.setattr(assistant_module, "post_json", slow_post_json)

    async def both():
        await asyncio.gather(
            service.handle_message("guest-1", "first"),
            service.handle_message("guest-1", "second"),
        )

    asyncio.run(both())

    assert [entry["content"] for entry in service.assistant("guest-1").history] == [
        "first",
        "re: first",
        "second",
        "re: second",
    ]


def test_profiles_persist_per_session(tmp_path):
    first = ConciergeService(profiles_dir=tmp_path)
    first.assistant("guest-7").update_guest_profile({"name": "Aarav", "room_number": "301"})

    assert (tmp_path / "guest-7.json").exists()

    second = ConciergeService(profiles_dir=tmp_path)
    assert second.assistant("guest-7").guest_profile == {"name": "Aarav", "room_number": "301"}
    assert second.assistant("guest-8").guest_profile == {}


def test_lookups_do_not_open_sessions(service):
    assert service.find("ghost") is None
    assert service.history("ghost") == []
    assert service.guest_profile("ghost") == {}
    service.clear_history("ghost")

    assert service.session_count() == 0


def test_stored_profile_is_readable_without_a_session(tmp_path):
    ConciergeService(profiles_dir=tmp_path).assistant("guest-7").update_guest_profile({"name": "Aarav"})

    fresh = ConciergeService(profiles_dir=tmp_path)
    assert fresh.guest_profile("guest-7") == {"name": "Aarav"}
    assert fresh.session_count() == 0


def test_least_recently_used_session_is_evicted():
    service = ConciergeService(store_factory=lambda session_id: InMemoryProfileStore(), max_sessions=2)
    service.assistant("a").set_language("hi")
    service.assistant("b")
    service.assistant("a")
    service.assistant("c")

    assert service.session_count() == 2
    assert service.find("b") is None
    assert service.find("a").language == "hi"
    assert service.find("c") is not None


def test_busy_session_is_not_evicted():
    service = ConciergeService(store_factory=lambda session_id: InMemoryProfileStore(), max_sessions=1)

    async def scenario():
        first = service._session("a")
        async with first.lock:
            service.assistant("b")
            return service.find("a") is first.assistant

    assert asyncio.run(scenario()) is True
    assert service.session_count() == 2

    service.assistant("c")
    assert service.session_count() == 1
    assert service.find("c") is not None
