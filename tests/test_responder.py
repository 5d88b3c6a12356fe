from __future__ import annotations

import io

from parrot.config import ParrotConfig
from parrot.llm import BackendKind, LLMManager
from parrot.llm.fallback import FALLBACK_RESPONSES
from parrot.responder import generate_response, respond


class RecordingBackend:
    kind = BackendKind.API

    def __init__(self):
        self.prompts = []

    def generate(self, ctx, prompt):
        self.prompts.append(prompt)
        return "Response: Pull before you push."

    def is_available(self):
        return True


def test_generate_response_builds_prompt_for_category():
    cfg = ParrotConfig()
    cfg.general.personality = "mild"
    cfg.local.enabled = False
    api = RecordingBackend()
    manager = LLMManager(cfg, api_backend=api)

    result, used = generate_response("git push origin main", 1, config=cfg, manager=manager, stream=io.StringIO())

    assert used is cfg
    assert result.backend is BackendKind.API
    assert result.text == "Pull before you push."
    assert "Command that failed: git push origin main" in api.prompts[0]
    assert "git failures" in api.prompts[0]


def test_respond_degrades_to_fallback_on_bad_config(tmp_path, monkeypatch):
    bad = tmp_path / "bad.yaml"
    bad.write_text("api: [oops\n", encoding="utf-8")
    monkeypatch.setenv("PARROT_CONFIG", str(bad))

    line = respond("npm install", "1", stream=io.StringIO())

    text = line.plain
    assert text.startswith("\U0001F99C ")
    assert text[2:] in FALLBACK_RESPONSES["nodejs"]


def test_respond_plain_when_colors_disabled():
    cfg = ParrotConfig()
    cfg.general.fallback_only = True
    cfg.general.colors = False
    line = respond("curl https://example.com", 7, config=cfg, stream=io.StringIO())
    assert not line.spans
    assert line.plain[2:] in FALLBACK_RESPONSES["http"]
