from __future__ import annotations

import os
from io import StringIO
from typing import Any, Dict, List, Optional

from ruamel.yaml import YAML


def to_yaml(obj: Dict[Any, Any]) -> str:
    """
    Converts an dictionary to a YAML string.

    Args:
        obj (dict): The dictionary to be converted.

    Returns:
        str: The YAML string.
    """
    yaml = YAML()
    yaml.indent(mapping=2, sequence=4, offset=2)
    buf = StringIO()
    yaml.dump(obj, buf)
    return buf.getvalue()


def first_env(*names: str) -> Optional[str]:
    """
    Returns the value of the first environment variable that is set and not
    empty, or None.

    Example:
        >>> first_env("AWS_REGION", "AWS_DEFAULT_REGION")
        'us-east-1'
    """
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def parse_key_values(pairs: List[str]) -> Dict[str, str]:
    """
    Parses a list of "KEY=VALUE" strings into a dictionary.

    Args:
        pairs (List[str]): The strings to parse. The value may contain '='.

    Returns:
        Dict[str, str]: The parsed pairs. Later keys win.

    Raises:
        ValueError: If an item has no '=' or an empty key.
    """
    result: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid KEY=VALUE pair: {pair}")
        result[key] = value
    return result
