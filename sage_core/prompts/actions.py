"""预置动作：给常用问题起个名字，调用方按名字取出问题文本。"""

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Action:
    name: str
    prompt: str


ACTIONS: Dict[str, Action] = {
    "explain": Action(name="explain", prompt="Explain what this code does and how it works."),
    "fix": Action(
        name="fix",
        prompt="Explain the errors/warnings shown in the diagnostics and how to fix them.",
    ),
}


def get(name: str) -> Optional[Action]:
    return ACTIONS.get(name)


def get_prompt(name: str) -> Optional[str]:
    action = ACTIONS.get(name)
    return action.prompt if action else None


def list_actions() -> List[str]:
    """按名称排序的动作列表。"""

    return sorted(ACTIONS)
