"""Minimal demonstration of a streamed question with one follow-up."""

import sys

from sage_core.api.service import BlockingChat


def _print_token(token: str) -> None:
    sys.stdout.write(token)
    sys.stdout.flush()


if __name__ == "__main__":
    chat = BlockingChat()
    chat.ask("What does `yield from` do in Python?", on_token=_print_token)
    print("\n---")
    chat.follow_up("Show a two-line example.", on_token=_print_token)
    print()
