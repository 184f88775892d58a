"""
Row and payload types for table-bound models.

A table's schema is a ``Record`` subclass. Its creatable and updatable
payload types are derived from it, so the three shapes never drift:

    class User(Record):
        __table_name__ = "users"

        name: str
        email: str
        active: bool = True

    UserCreate, UserUpdate = derive_payload_models(User)

``UserCreate`` has every field except ``id``; ``UserUpdate`` has the same
fields, all optional. Both reject unknown fields.
"""

from functools import lru_cache
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from .exceptions import PayloadValidationError

PRIMARY_KEY = "id"

Payload = Union[BaseModel, Mapping[str, Any]]


class Record(BaseModel):
    """
    Immutable snapshot of one stored row.

    ``id`` is always present on rows read back from the store. Columns the
    schema does not declare are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    __table_name__: ClassVar[Optional[str]] = None

    id: int

    @classmethod
    def table_name(cls) -> str:
        """Get table name, defaulting to the pluralised class name."""
        if cls.__table_name__:
            return cls.__table_name__
        return cls.__name__.lower() + "s"

    @classmethod
    def payload_fields(cls) -> Dict[str, Any]:
        """Every declared field except the primary key."""
        return {
            name: info for name, info in cls.model_fields.items() if name != PRIMARY_KEY
        }


@lru_cache(maxsize=None)
def derive_payload_models(record_cls: Type[Record]) -> Tuple[Type[BaseModel], Type[BaseModel]]:
    """
    Build the creatable and updatable payload types for a record type.

    Args:
        record_cls: Record subclass describing the table

    Returns:
        Tuple of (CreateModel, UpdateModel)
    """
    forbid = ConfigDict(extra="forbid")
    create_fields = {}
    update_fields = {}

    for name, info in record_cls.payload_fields().items():
        create_fields[name] = (info.annotation, info)
        update_fields[name] = (Optional[info.annotation], None)

    create_cls = create_model(
        f"{record_cls.__name__}Create", __config__=forbid, **create_fields
    )
    update_cls = create_model(
        f"{record_cls.__name__}Update", __config__=forbid, **update_fields
    )
    return create_cls, update_cls


def payload_to_dict(
    payload: Payload,
    payload_model: Optional[Type[BaseModel]] = None,
    *,
    partial: bool = False,
) -> Dict[str, Any]:
    """
    Normalise a payload into an ordered column -> value dict.

    Args:
        payload: Pydantic instance or mapping of column values
        payload_model: Type to validate mappings against (None = no validation)
        partial: Keep only fields the caller explicitly set

    Returns:
        Dict of column -> value in field order

    Raises:
        PayloadValidationError: If the mapping does not fit payload_model
    """
    if isinstance(payload, BaseModel):
        model = payload
    elif payload_model is not None:
        try:
            model = payload_model.model_validate(dict(payload))
        except ValidationError as e:
            raise PayloadValidationError(
                f"Invalid {payload_model.__name__} payload: {e}", errors=e.errors()
            ) from e
    else:
        model = None

    # Creation fills defaults; updates only write what was set
    data = dict(payload) if model is None else model.model_dump(exclude_unset=partial)
    if partial:
        data.pop(PRIMARY_KEY, None)
    return data


def payload_is_empty(payload: Payload) -> bool:
    """True when the caller supplied no fields, before any defaults apply."""
    if isinstance(payload, BaseModel):
        return not payload.model_fields_set
    return not payload
