"""Transaction responses returned by the database after a write."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum

_INDENT = "    "


class TxType(Enum):
    """The kind of write a transaction performed."""

    CREATE = "Create"
    INSERT = "Insert"
    UPDATE_SET = "UpdateSet"
    UPDATE_CONTENT = "UpdateContent"
    DELETE = "Delete"
    EVICT_ENTITY = "EvictEntity"
    EVICT_ENTITY_TREE = "EvictEntityTree"


def _ron_string(text: str) -> str:
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def _ron_optional_uuid(value: uuid.UUID | None) -> str:
    return "None" if value is None else f"Some({_ron_string(str(value))})"


@dataclass(frozen=True)
class CreateEntityResponse:
    entity: str
    message: str


@dataclass(frozen=True)
class InsertEntityResponse:
    entity: str
    uuid: uuid.UUID
    message: str


@dataclass(frozen=True)
class DeleteOrEvictEntityResponse:
    entity: str
    uuid: uuid.UUID | None
    message: str
    tx_type: TxType


@dataclass(frozen=True)
class UpdateEntityResponse:
    entity: str
    uuid: uuid.UUID
    state: str
    message: str
    tx_type: TxType


@dataclass(frozen=True)
class TxResponse:
    """The common response of every transaction."""

    tx_type: TxType
    entity: str
    uuid: uuid.UUID | None
    state: str
    message: str

    def write(self) -> str:
        """Render the response as pretty RON."""
        fields = [
            ("tx_type", self.tx_type.value),
            ("entity", _ron_string(self.entity)),
            ("uuid", _ron_optional_uuid(self.uuid)),
            ("state", _ron_string(self.state)),
            ("message", _ron_string(self.message)),
        ]
        body = "".join(f"{_INDENT}{name}: {value},\n" for name, value in fields)
        return f"(\n{body})"

    @classmethod
    def from_create(cls, response: CreateEntityResponse) -> TxResponse:
        return cls(TxType.CREATE, response.entity, None, "", response.message)

    @classmethod
    def from_insert(cls, response: InsertEntityResponse) -> TxResponse:
        return cls(TxType.INSERT, response.entity, response.uuid, "", response.message)

    @classmethod
    def from_delete_or_evict(cls, response: DeleteOrEvictEntityResponse) -> TxResponse:
        return cls(response.tx_type, response.entity, response.uuid, "", response.message)

    @classmethod
    def from_update(cls, response: UpdateEntityResponse) -> TxResponse:
        return cls(
            response.tx_type, response.entity, response.uuid, response.state, response.message
        )