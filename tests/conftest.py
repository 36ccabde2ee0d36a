from collections.abc import Callable, Sequence
from typing import Any

import pytest


class ScriptedPrompter:
    """Prompter that replays a fixed list of answers in order."""

    def __init__(self, answers: Sequence[Any]) -> None:
        self._answers = list(answers)
        self.prompts: list[str] = []
        self.messages: list[str] = []
        self.warnings: list[str] = []

    def _next(self, message: str) -> Any:
        self.prompts.append(message)
        if not self._answers:
            raise AssertionError(f"unexpected prompt: {message}")
        return self._answers.pop(0)

    def ask(self, message: str, default: str = "") -> str:
        return self._next(message)

    def choose(self, message: str, options: Sequence[str], default: str) -> str:
        answer = self._next(message)
        assert answer in options, f"{answer!r} is not one of {list(options)}"
        return answer

    def confirm(self, message: str, default: bool = False) -> bool:
        return self._next(message)

    def info(self, message: str) -> None:
        self.messages.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    @property
    def exhausted(self) -> bool:
        return not self._answers


@pytest.fixture
def make_prompter() -> Callable[..., ScriptedPrompter]:
    def _make(*answers: Any) -> ScriptedPrompter:
        return ScriptedPrompter(answers)

    return _make
