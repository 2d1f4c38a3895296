from __future__ import annotations

import sys
from typing import Sequence


class Arguments:
    """
    Launch arguments of the host process.

    - `-name` flags are presence switches.
    - `--name value` pairs carry a value in the following slot.
    """

    def __init__(self, args: Sequence[str] | None = None):
        self.args: list[str] = list(sys.argv[1:] if args is None else args)

    def has_argument(self, arg: str) -> bool:
        return arg.startswith("-") and arg in self.args

    def try_get_argument(self, arg: str) -> str | None:
        if not arg.startswith("--"):
            return None
        try:
            index = self.args.index(arg)
        except ValueError:
            return None
        if index < len(self.args) - 1:
            return self.args[index + 1]
        return None
