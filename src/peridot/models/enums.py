"""Integer-coded enums with lowercase string forms.

Every enum is stored as its integer code and travels over the wire as its
string code. Decoding a value outside the domain raises
InvalidDomainValueError carrying the enum's zero member as ``default``.
"""

from enum import IntEnum
from typing import Any

from pydantic_core import core_schema

from peridot.errors.exceptions import InvalidDomainValueError


class CodedEnum(IntEnum):
    """Base for enums with an int code and a lowercase string code."""

    @property
    def code(self) -> int:
        return int(self)

    @property
    def string(self) -> str:
        return self.name.lower()

    @classmethod
    def default(cls):
        return next(iter(cls))

    @classmethod
    def _label(cls) -> str:
        return cls.__name__

    @classmethod
    def from_int(cls, value: int):
        try:
            return cls(value)
        except ValueError:
            raise InvalidDomainValueError(cls._label(), value, cls.default()) from None

    @classmethod
    def from_string(cls, value: str):
        member = cls.__members__.get(value.upper()) if value == value.lower() else None
        if member is None:
            raise InvalidDomainValueError(cls._label(), value, cls.default())
        return member

    @classmethod
    def _coerce(cls, value: Any):
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls.from_string(value)
            except InvalidDomainValueError as exc:
                raise ValueError(exc.message) from None
        raise ValueError(f"{cls._label()} must be given as a string")

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type, handler):
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda member: member.string, when_used="json"
            ),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, schema, handler):
        return {"type": "string", "enum": [member.string for member in cls]}


class Status(CodedEnum):
    # SAME means "unchanged" and is never a persisted run status
    SAME = 0
    STARTUP = 1
    RUNNING = 2
    STOPPED = 3

    @classmethod
    def _label(cls) -> str:
        return "status"


class Health(CodedEnum):
    SAME = 0
    OK = 1
    DEGRADED = 2
    ERROR = 3

    @classmethod
    def _label(cls) -> str:
        return "health"


class UserAccessLevel(CodedEnum):
    DISABLED = 0
    VIEWER = 10
    COMMENTER = 20
    OPERATOR = 30
    ADMIN = 99

    @classmethod
    def _label(cls) -> str:
        return "user access level"


class SPDXElementType(CodedEnum):
    UNKNOWN = 0
    REPOPULL = 10
    COMPONENT = 20
    FILE = 30

    @classmethod
    def _label(cls) -> str:
        return "SPDX element type"


class JobConfigType(CodedEnum):
    KV = 0
    CODEREADER = 1
    SPDXREADER = 2

    @classmethod
    def _label(cls) -> str:
        return "job config type"


def is_terminally_clear(status: Status, health: Health) -> bool:
    """Whether a finished job unblocks its dependents.

    Degraded runs still count; only a hard error holds dependents back.
    """
    return status == Status.STOPPED and health != Health.ERROR
