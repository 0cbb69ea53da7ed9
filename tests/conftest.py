"""Pytest configuration and shared fixtures."""

import asyncio
import stat
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import fakeredis.aioredis
import pytest
import pytest_asyncio

# Add src directory to Python path for imports
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from common.redis_client import RedisConnection
from common.schemas import ConversationEntity
from translator.engine_client import EngineClient


def default_translate(text: str, source: str, target: str) -> str:
    """Deterministic stand-in for the engine's translation."""
    return f"[{target}]{text}"


class FakeEngineClient(EngineClient):
    """
    EngineClient whose transport is an in-process handler instead of a subprocess.

    The typed helpers (translate_text / translate_texts) run unchanged on top
    of call(), so response validation is exercised for real.
    """

    def __init__(
        self,
        translate: Callable[[str, str, str], str] = default_translate,
        detected_language: str = "en",
    ):
        super().__init__(binary_path="fake-engine", args=["-json"])
        self.translate = translate
        self.detected_language = detected_language
        self.payloads: List[Dict[str, Any]] = []
        self.failures: Dict[str, Exception] = {}
        self.responses: List[Dict[str, Any]] = []
        self.call_times: List[float] = []

    def fail_on(self, text: str, error: Exception) -> None:
        """Raise error for any request containing text."""
        self.failures[text] = error

    def queue_response(self, document: Dict[str, Any]) -> None:
        """Return document verbatim for the next call."""
        self.responses.append(document)

    async def call(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls_made += 1
        self.call_times.append(asyncio.get_running_loop().time())
        self.payloads.append(payload)

        if self.responses:
            return self.responses.pop(0)

        texts = payload.get("texts") or [payload.get("text", "")]
        for needle, error in self.failures.items():
            if any(needle in t for t in texts):
                raise error

        source = payload["from"]
        resolved = self.detected_language if source == "auto" else source

        if "texts" in payload:
            return {
                "success": True,
                "results": [
                    {"original": t, "translated": self.translate(t, source, payload["to"])}
                    for t in payload["texts"]
                ],
                "from": resolved,
                "to": payload["to"],
            }
        return {
            "success": True,
            "original": payload["text"],
            "translated": self.translate(payload["text"], source, payload["to"]),
            "from": resolved,
            "to": payload["to"],
        }

    @property
    def batch_payloads(self) -> List[Dict[str, Any]]:
        return [p for p in self.payloads if "texts" in p]

    @property
    def single_payloads(self) -> List[Dict[str, Any]]:
        return [p for p in self.payloads if "texts" not in p]


class GatedEngineClient(FakeEngineClient):
    """
    Fake engine whose calls can be held open to force specific interleavings.

    With gated=True every call waits until release() is called for the first
    text of its request. With gated=False every call sleeps for delay seconds.
    The peak number of simultaneously open calls is recorded in max_active.
    """

    def __init__(self, gated: bool = True, delay: float = 0.0, **kwargs):
        super().__init__(**kwargs)
        self.gated = gated
        self.delay = delay
        self.gates: Dict[str, asyncio.Event] = {}
        self.started: List[str] = []
        self.active = 0
        self.max_active = 0

    def gate(self, text: str) -> asyncio.Event:
        return self.gates.setdefault(text, asyncio.Event())

    def release(self, text: str) -> None:
        self.gate(text).set()

    async def call(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        text = payload["texts"][0] if "texts" in payload else payload["text"]
        self.started.append(text)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gated:
                await self.gate(text).wait()
            else:
                await asyncio.sleep(self.delay)
            return await super().call(payload)
        finally:
            self.active -= 1


@pytest.fixture
def fake_engine() -> FakeEngineClient:
    """Fake engine client that translates text to '[<to>]<text>'."""
    return FakeEngineClient()


@pytest.fixture
def gated_engine() -> GatedEngineClient:
    """Fake engine holding each call until released."""
    return GatedEngineClient(gated=True)


@pytest.fixture
def slow_engine() -> GatedEngineClient:
    """Fake engine answering every call after a short delay."""
    return GatedEngineClient(gated=False, delay=0.03)


@pytest.fixture
def engine_script(tmp_path) -> Callable[[str], str]:
    """
    Factory writing an executable stand-in engine script.

    The returned callable takes the body of a Python program that has
    `request` (the parsed stdin JSON) in scope, and returns the script path.
    """

    def _write(body: str, name: str = "engine") -> str:
        script = tmp_path / name
        script.write_text(
            f"#!{sys.executable}\n"
            "import json, sys\n"
            "raw = sys.stdin.read()\n"
            "request = json.loads(raw) if raw.strip() else {}\n"
            f"{body}\n",
            encoding="utf-8",
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(script)

    return _write


@pytest.fixture
def echo_engine_body() -> str:
    """Engine program answering both request shapes like the real engine."""
    return (
        "src = request.get('from') or 'auto'\n"
        "to = request.get('to') or 'en'\n"
        "resolved = 'en' if src == 'auto' else src\n"
        "if request.get('texts'):\n"
        "    out = {'success': True, 'from': resolved, 'to': to,\n"
        "           'results': [{'original': t, 'translated': t.upper()} for t in request['texts']]}\n"
        "else:\n"
        "    out = {'success': True, 'from': resolved, 'to': to,\n"
        "           'original': request['text'], 'translated': request['text'].upper()}\n"
        "print(json.dumps(out, ensure_ascii=False, indent=2))\n"
    )


@pytest.fixture
def sample_entities() -> List[ConversationEntity]:
    """Five English conversation messages."""
    return [
        ConversationEntity(id=f"msg-{i}", content=f"Message number {i}.", language="en")
        for i in range(1, 6)
    ]


@pytest_asyncio.fixture
async def fake_redis_client():
    """
    Fake Redis client using fakeredis for realistic Redis behavior.

    This provides a real Redis-like interface without requiring a Redis server.
    """
    fake_redis = fakeredis.aioredis.FakeRedis(decode_responses=True, encoding="utf-8")
    yield fake_redis
    await fake_redis.flushall()
    await fake_redis.aclose()


@pytest_asyncio.fixture
async def fake_redis_connection(fake_redis_client) -> RedisConnection:
    """RedisConnection wired to fakeredis and marked as connected."""
    connection = RedisConnection(url="redis://fake:6379")
    connection.client = fake_redis_client
    connection.connected = True
    yield connection
    connection.connected = False


