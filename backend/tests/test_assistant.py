import asyncio
from datetime import datetime

import pytest
from backend.app import assistant as assistant_module
from backend.app.assistant import HISTORY_LIMIT, ConciergeAssistant
from backend.app.intents import Intent
from backend.app.openai_async import CompletionUnavailable
from backend.app.profile_store import InMemoryProfileStore
from backend.app.settings import settings


def _fixed_clock():
    return datetime(2024, 3, 1, 9, 0)


@pytest.fixture
def live_completion(monkeypatch):
    """Configure a key and route completion calls to a recorder."""
    settings.OPENAI_API_KEY = "test-key"
    calls = []

    async def fake_post_json(path, payload, timeout=None):  # noqa: ARG001
        calls.append((path, payload))
        last = payload["messages"][-1]["content"]
        return {"choices": [{"message": {"content": f"reply to {last}"}}]}

    monkeypatch.setattr(assistant_module, "post_json", fake_post_json)
    return calls


def test_reply_without_key_uses_fallback(monkeypatch):
    async def boom(*args, **kwargs):  # pragma: no cover
        raise AssertionError("completion endpoint must not be called")

    monkeypatch.setattr(assistant_module, "post_json", boom)
    bot = ConciergeAssistant(clock=_fixed_clock)

    reply = asyncio.run(bot.send_message("What's the weather like?"))

    assert reply.fallback is True
    assert reply.intent is Intent.WEATHER
    assert reply.requires_action is True
    assert reply.text.startswith("Good morning!")
    assert bot.history == []


def test_placeholder_key_counts_as_unset(monkeypatch):
    settings.OPENAI_API_KEY = "your_openai_api_key"
    bot = ConciergeAssistant(clock=_fixed_clock)

    reply = asyncio.run(bot.send_message("hello"))

    assert reply.fallback is True
    assert reply.intent is Intent.GENERAL
    assert reply.requires_action is False


def test_completion_request_shape(live_completion):
    bot = ConciergeAssistant(
        InMemoryProfileStore({"name": "Priya", "room_number": "412"}), clock=_fixed_clock
    )

    reply = asyncio.run(bot.send_message("Any good restaurants?"))

    assert reply.fallback is False
    assert reply.text == "reply to Any good restaurants?"
    assert reply.intent is Intent.RESTAURANT

    path, payload = live_completion[0]
    assert path == "/chat/completions"
    assert payload["model"] == settings.OPENAI_MODEL
    assert payload["max_tokens"] == 500
    assert payload["temperature"] == 0.8
    assert payload["presence_penalty"] == 0.2
    assert payload["frequency_penalty"] == 0.3
    assert payload["top_p"] == 0.9
    system, user = payload["messages"]
    assert system["role"] == "system"
    assert "Guest Name: Priya" in system["content"]
    assert user == {"role": "user", "content": "Any good restaurants?"}


def test_history_is_sent_and_capped(live_completion):
    bot = ConciergeAssistant(clock=_fixed_clock)

    for index in range(12):
        asyncio.run(bot.send_message(f"question {index}"))

    history = bot.history
    assert len(history) == HISTORY_LIMIT
    assert history[0] == {"role": "user", "content": "question 2"}
    assert history[-1] == {"role": "assistant", "content": "reply to question 11"}
    roles = [entry["role"] for entry in history]
    assert roles == ["user", "assistant"] * (HISTORY_LIMIT // 2)

    # The last request carried the previous turns between system and user messages.
    _, payload = live_completion[-1]
    assert len(payload["messages"]) == 1 + HISTORY_LIMIT + 1


def test_completion_failure_falls_back_and_keeps_history(monkeypatch):
    settings.OPENAI_API_KEY = "test-key"

    async def failing_post_json(path, payload, timeout=None):  # noqa: ARG001
        raise CompletionUnavailable("Completion error 500: upstream")

    monkeypatch.setattr(assistant_module, "post_json", failing_post_json)
    bot = ConciergeAssistant(clock=_fixed_clock)

    reply = asyncio.run(bot.send_message("book a table"))

    assert reply.fallback is True
    assert reply.intent is Intent.BOOKING
    assert bot.history == []


def test_malformed_completion_falls_back(monkeypatch):
    settings.OPENAI_API_KEY = "test-key"

    async def empty_post_json(path, payload, timeout=None):  # noqa: ARG001
        return {"choices": []}

    monkeypatch.setattr(assistant_module, "post_json", empty_post_json)
    bot = ConciergeAssistant(clock=_fixed_clock)

    reply = asyncio.run(bot.send_message("hotel amenities?"))

    assert reply.fallback is True
    assert reply.intent is Intent.HOTEL_INFO


def test_explicit_intent_skips_classification():
    bot = ConciergeAssistant(clock=_fixed_clock)
    reply = asyncio.run(bot.send_message("hello", intent=Intent.ATTRACTIONS))
    assert reply.intent is Intent.ATTRACTIONS


def test_clear_history(live_completion):
    bot = ConciergeAssistant(clock=_fixed_clock)
    asyncio.run(bot.send_message("hi"))
    assert bot.history

    bot.clear_history()

    assert bot.history == []


def test_history_property_returns_copy(live_completion):
    bot = ConciergeAssistant(clock=_fixed_clock)
    asyncio.run(bot.send_message("hi"))

    bot.history.clear()

    assert len(bot.history) == 2


def test_update_guest_profile_merges_and_persists():
    store = InMemoryProfileStore({"name": "Priya", "room_number": "412"})
    bot = ConciergeAssistant(store)

    merged = bot.update_guest_profile({"room_number": "501", "dietary": "vegetarian"})

    assert merged == {"name": "Priya", "room_number": "501", "dietary": "vegetarian"}
    assert store.load() == merged
    assert "Room Number: 501" in bot.system_prompt()


def test_set_language():
    bot = ConciergeAssistant(clock=_fixed_clock)
    bot.set_language("HI")
    assert bot.language == "hi"
    assert "Preferred Language: Hindi and English" in bot.system_prompt()

    with pytest.raises(ValueError):
        bot.set_language("fr")
    assert bot.language == "hi"
