import json
from dataclasses import asdict, dataclass, replace

import yaml

from marc21.errors import MarcError


@dataclass(frozen=True)
class Diagnostic:
    stage: str
    kind: str
    message: str
    offset: int | None = None
    entry_index: int | None = None
    tag: str | None = None
    record_index: int | None = None

    @classmethod
    def from_error(cls, error: MarcError, offset: int | None = None, entry_index: int | None = None,
                   tag: str | None = None, record_index: int | None = None) -> 'Diagnostic':
        return cls(
            stage=error.stage,
            kind=error.kind,
            message=error.message,
            offset=error.offset if offset is None else offset,
            entry_index=entry_index,
            tag=tag,
            record_index=record_index,
        )

    def __str__(self) -> str:
        where = []
        if self.record_index is not None:
            where.append(f"record {self.record_index}")
        if self.entry_index is not None:
            where.append(f"entry {self.entry_index}" + (f" ({self.tag})" if self.tag is not None else ""))
        if self.offset is not None:
            where.append(f"offset {self.offset}")
        prefix = ", ".join(where)
        return f"{prefix}: {self.stage} {self.kind}: {self.message}" if prefix else f"{self.stage} {self.kind}: {self.message}"


class ErrorReport:
    """Ordered log of the problems met while decoding one record or a batch of records."""

    def __init__(self, diagnostics: list[Diagnostic] | None = None) -> None:
        self.diagnostics: list[Diagnostic] = [] if diagnostics is None else list(diagnostics)

    def add(self, diagnostic: Diagnostic) -> Diagnostic:
        self.diagnostics.append(diagnostic)
        return diagnostic

    def add_error(self, error: MarcError, **location) -> Diagnostic:
        return self.add(Diagnostic.from_error(error, **location))

    def extend(self, diagnostics) -> None:
        self.diagnostics.extend(diagnostics)

    def for_record(self, record_index: int) -> 'ErrorReport':
        return ErrorReport([replace(d, record_index=record_index) for d in self.diagnostics])

    def kinds(self) -> list[str]:
        return [d.kind for d in self.diagnostics]

    def format(self) -> str:
        return "\n".join(str(d) for d in self.diagnostics)

    def to_list(self) -> list[dict]:
        return [asdict(d) for d in self.diagnostics]

    def dump_json(self, f, indent: int | None = None) -> None:
        json.dump(self.to_list(), f, indent=indent)

    def dump_yaml(self, f, indent: int | None = None) -> None:
        yaml.dump(self.to_list(), f, indent=indent, sort_keys=False)

    def __iter__(self):
        return iter(self.diagnostics)

    def __len__(self) -> int:
        return len(self.diagnostics)

    def __bool__(self) -> bool:
        return len(self.diagnostics) > 0

    def __getitem__(self, index: int) -> Diagnostic:
        return self.diagnostics[index]

    def __repr__(self) -> str:
        return f"ErrorReport({self.diagnostics!r})"
