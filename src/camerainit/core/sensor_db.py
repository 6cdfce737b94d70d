from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from camerainit.errors import SensorDatabaseError

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s\-_]+")


@dataclass(frozen=True)
class SensorDatasheet:
    make: str
    model: str
    sensor_width_mm: float


def _make_tokens(make: str) -> list[str]:
    text = make.strip().lower().replace(",", " ").replace(".", " ")
    return [t for t in _SEPARATORS.split(text) if t]


def _normalize_make(make: str) -> str:
    tokens = _make_tokens(make)
    return tokens[0] if tokens else ""


def _normalize_model(make: str, model: str) -> str:
    make_tokens = set(_make_tokens(make))
    tokens = [t for t in _SEPARATORS.split(model.strip().lower()) if t]
    kept = [t for t in tokens if t not in make_tokens]
    # Some vendors write the make only inside the model ("Canon EOS 5D" vs "EOS 5D").
    return " ".join(kept if kept else tokens)


def datasheet_key(make: str, model: str) -> tuple[str, str]:
    return _normalize_make(make), _normalize_model(make, model)


class SensorDatabase:
    """
    Sensor widths indexed by a normalized (make, model) key.

    The index is built once; lookups never mutate it, so one instance can be
    shared by all workers of a pass.
    """

    def __init__(self, datasheets: Iterable[SensorDatasheet] = ()) -> None:
        self.datasheets: tuple[SensorDatasheet, ...] = tuple(datasheets)
        index: dict[tuple[str, str], SensorDatasheet] = {}
        for ds in self.datasheets:
            index.setdefault(datasheet_key(ds.make, ds.model), ds)
        self._index = index

    def __len__(self) -> int:
        return len(self.datasheets)

    def find(self, make: str, model: str) -> SensorDatasheet | None:
        if not make.strip() or not model.strip():
            return None
        return self._index.get(datasheet_key(make, model))

    def lookup(self, make: str, model: str) -> float | None:
        ds = self.find(make, model)
        return None if ds is None else ds.sensor_width_mm


def get_sensor_width(make: str, model: str, database: SensorDatabase) -> float | None:
    return database.lookup(make, model)


def parse_sensor_database(lines: Iterable[str], source: str = "<memory>") -> SensorDatabase:
    datasheets: list[SensorDatasheet] = []
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        fields = [f.strip() for f in line.split(";")]
        if len(fields) < 3 or not fields[0] or not fields[1]:
            raise SensorDatabaseError(f"{source}:{lineno}: expected 'make;model;sensor_width_mm', got {line!r}")
        try:
            width = float(fields[2])
        except ValueError as e:
            raise SensorDatabaseError(f"{source}:{lineno}: invalid sensor width {fields[2]!r}") from e
        if not width > 0.0:
            raise SensorDatabaseError(f"{source}:{lineno}: sensor width must be > 0")
        datasheets.append(SensorDatasheet(make=fields[0], model=fields[1], sensor_width_mm=width))
    return SensorDatabase(datasheets)


def load_sensor_database(path: str | Path) -> SensorDatabase:
    p = Path(path)
    if not p.is_file():
        raise SensorDatabaseError(f"Invalid input database '{p}', please specify a valid file.")
    try:
        text = p.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise SensorDatabaseError(f"Cannot read sensor database '{p}': {e}") from e
    database = parse_sensor_database(text.splitlines(), source=str(p))
    logger.debug("Loaded %d sensor datasheets from %s", len(database), p)
    return database
