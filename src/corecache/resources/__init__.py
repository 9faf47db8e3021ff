"""Packaged resources for corecache."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Iterator, Tuple

from jsonschema import Draft202012Validator

__all__ = ["load_schema", "iter_schema_errors", "validator_for"]


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    """Return a JSON schema shipped with the package."""

    resource = resources.files(__name__) / name
    with resource.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@lru_cache(maxsize=None)
def validator_for(name: str) -> Draft202012Validator:
    return Draft202012Validator(load_schema(name))


def iter_schema_errors(name: str, payload: Any) -> Iterator[Tuple[str, str]]:
    """Yield (path, message) pairs for schema issues in the payload."""
    for error in validator_for(name).iter_errors(payload):
        path = ".".join(str(item) for item in error.absolute_path)
        yield path, error.message
