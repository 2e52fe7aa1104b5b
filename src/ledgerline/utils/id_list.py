"""Parsing for comma-separated ID lists such as "1, 2,3"."""

from typing import Iterable, Optional, Union


def parse_id_list(value: Union[str, Iterable[int], None]) -> Optional[tuple[int, ...]]:
    """Parse a comma-separated string (or an iterable of ints) into IDs.

    Entries that are not integers are ignored. Returns None when nothing
    usable remains, meaning "no filter".
    """
    if value is None:
        return None

    if isinstance(value, str):
        ids = []
        for part in value.split(","):
            part = part.strip()
            try:
                ids.append(int(part))
            except ValueError:
                continue
    else:
        ids = [int(v) for v in value]

    return tuple(ids) or None
