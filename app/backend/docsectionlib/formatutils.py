import dataclasses
import json
from typing import Generator, Iterable


class JSONEncoder(json.JSONEncoder):
    """
    JSON encoder that serializes dataclass instances as dictionaries.
    """

    def default(self, o):
        if dataclasses.is_dataclass(o) and not isinstance(o, type):
            return dataclasses.asdict(o)
        return super().default(o)


def format_as_ndjson(items: Iterable) -> Generator[str, None, None]:
    """
    Serializes each item as one line of newline-delimited JSON.
    """
    for item in items:
        yield json.dumps(item, ensure_ascii=False, cls=JSONEncoder) + "\n"
