from sage_core.prompts import actions


def test_builtin_actions():
    assert actions.list_actions() == ["explain", "fix"]
    assert actions.get_prompt("explain") == "Explain what this code does and how it works."
    assert actions.get("fix").prompt.startswith("Explain the errors/warnings")


def test_unknown_action():
    assert actions.get("nope") is None
    assert actions.get_prompt("nope") is None
