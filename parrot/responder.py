from __future__ import annotations

import logging
from typing import IO, Optional, Tuple

from rich.text import Text

from .config import ConfigError, ParrotConfig, load_config
from .llm.base import GenerationRequest, GenerationResult
from .llm.bounded import DEFAULT_DEADLINE_SECONDS, generate_with_deadline
from .llm.manager import LLMManager
from .prompts import build_prompt, detect_command_type
from .ui.colors import format_parrot_output

logger = logging.getLogger(__name__)


def generate_response(
    command_text: str,
    exit_code: str | int,
    *,
    config: Optional[ParrotConfig] = None,
    manager: Optional[LLMManager] = None,
    deadline: float = DEFAULT_DEADLINE_SECONDS,
    stream: Optional[IO[str]] = None,
) -> Tuple[GenerationResult, ParrotConfig]:
    if config is None:
        try:
            config, _ = load_config()
        except ConfigError as exc:
            logger.warning("%s; using defaults in fallback-only mode", exc)
            config = ParrotConfig().with_general(fallback_only=True)

    category = detect_command_type(command_text)
    prompt = build_prompt(category, command_text, exit_code, config.general.personality)
    if manager is None:
        manager = LLMManager(config, warm_up=True)
    result = generate_with_deadline(
        manager,
        GenerationRequest(prompt=prompt, command_category=category),
        deadline=deadline,
        stream=stream,
    )
    return result, config


def respond(
    command_text: str,
    exit_code: str | int,
    *,
    config: Optional[ParrotConfig] = None,
    deadline: float = DEFAULT_DEADLINE_SECONDS,
    stream: Optional[IO[str]] = None,
) -> Text:
    """Produce the styled one-liner for a failed shell command."""
    result, config = generate_response(command_text, exit_code, config=config, deadline=deadline, stream=stream)
    general = config.general
    return format_parrot_output(general.personality, result.text, enhanced=general.enhanced, colors=general.colors)
