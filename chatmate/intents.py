from __future__ import annotations

import re

from chatmate.models import AiReply, InferredCommand
from chatmate.placeholders import RANDOM_USER_PLACEHOLDER

# [[command:<name>]] anywhere in the completion, see prompt.SYSTEM_PROMPT
COMMAND_MARKER = re.compile(r"\[\[\s*command\s*:\s*([a-z_]+)\s*\]\]", re.IGNORECASE)

KNOWN_COMMANDS = {
    "nominate": InferredCommand.NOMINATE,
}

_SPACES = re.compile(r"[ \t]{2,}")


def _tidy(text: str) -> str:
    lines = [_SPACES.sub(" ", line).strip() for line in text.splitlines()]
    return "\n".join(lines).strip()


def infer(raw_text: str) -> AiReply:
    inferred = InferredCommand.NONE

    def _replace(match: re.Match[str]) -> str:
        nonlocal inferred
        command = KNOWN_COMMANDS.get(match.group(1).lower())
        if command is None:
            return match.group(0)
        if inferred is InferredCommand.NONE:
            inferred = command
        return ""

    stripped = COMMAND_MARKER.sub(_replace, raw_text)
    if inferred is InferredCommand.NONE:
        return AiReply(response_text=raw_text)
    response_text = _tidy(stripped)
    if not response_text and inferred is InferredCommand.NOMINATE:
        response_text = RANDOM_USER_PLACEHOLDER
    return AiReply(response_text=response_text, inferred_command=inferred)


class CommandInferencer:
    def infer(self, raw_text: str) -> AiReply:
        return infer(raw_text)
