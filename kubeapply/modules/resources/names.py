import random
import string
from typing import Sequence

ALLOWED_CHARS = string.ascii_lowercase + string.digits


def random_name(length: int, prefixes: Sequence[str]) -> str:
    """
    Build a name from dash-joined prefixes followed by random characters.

    The random part fills the name up to ``length``. When the prefixes
    already reach ``length`` they are returned as-is, trailing dash included.
    """
    name = "-".join(prefixes) + "-"

    remaining = length - len(name)
    if remaining <= 0:
        return name

    return name + "".join(random.choice(ALLOWED_CHARS) for _ in range(remaining))
