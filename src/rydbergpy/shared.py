#! /usr/bin/env python
"""Shared objects."""
import json
from pathlib import Path
from types import SimpleNamespace

from pint import UnitRegistry


class Constant(float):
    """Constant class.

    Extends float with the `Constant.details` member.

    >>> c = Constant({"value": 2.5, "unit": "MHz um^6"})
    >>> c * 2
    5.0
    >>> c.details.unit
    'MHz um^6'
    """

    details: SimpleNamespace
    """Details (e.g. units) of the constant."""

    def __new__(cls, details: dict):  # noqa D102
        details = dict(details)
        obj = super().__new__(cls, details.pop("value"))
        obj.details = SimpleNamespace(**details)
        return obj

    @staticmethod
    def fromjson(json_file: Path) -> SimpleNamespace:
        """Read all constants from the JSON file.

        Args:
            json_file (str)

        Returns:
            SimpleNamespace: A namespace containing all constants.
        """
        with open(json_file, encoding="utf-8") as f:
            data = json.load(f)
        return SimpleNamespace(**{k: Constant(v) for k, v in data.items()})


class DimensionMismatchError(ValueError):
    """A per-atom quantity does not match the number of atoms or the subspace."""


class EmptySubspaceError(ValueError):
    """No basis state is allowed by the given independent sets."""


DATA_DIR = Path(__file__).parent / "data"
constants = Constant.fromjson(DATA_DIR / "constants.json")

ureg = UnitRegistry()
