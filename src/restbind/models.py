"""
Classes in :py:mod:`restbind.models` describe the static field schema of a model:
the type annotation of each field, how relations to other models are resolved,
and how a field is treated when the model is serialized for a write.
"""
import dataclasses
import enum
import typing
from collections import OrderedDict

from .exceptions import InvalidDeclarationError
from .utils import UNSPECIFIED, UnspecifiedType, assert_not_none, english_enumerate


class FieldType(enum.Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    EMAIL = "email"
    RELATION = "relation"


class RelationType(enum.Enum):
    ONE = "one"
    MANY = "many"


class SaveMode(enum.Enum):
    KEEP = "keep"
    """The field is sent as-is (relations are cleaned recursively)."""
    OMIT = "omit"
    """The field is never sent to the backend."""
    REFERENCE = "reference"
    """Only the identifier of the related value(s) is sent."""


E = typing.TypeVar("E", bound=enum.Enum)


def _coerce_enum(enum_type: typing.Type[E], value: typing.Any, what: str) -> E:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        raise InvalidDeclarationError(
            f"invalid {what} {value!r}; expected one of "
            f"{english_enumerate((repr(m.value) for m in enum_type), conj=', or ')}"
        )


def coerce_save_mode(save: typing.Any) -> SaveMode:
    if isinstance(save, SaveMode):
        return save
    if save is UNSPECIFIED or save is True:
        return SaveMode.KEEP
    if save is False:
        return SaveMode.OMIT
    if save == "reference":
        return SaveMode.REFERENCE
    raise InvalidDeclarationError(
        f"invalid save directive {save!r}; expected True, False, or 'reference'"
    )


ModelTarget = typing.Union[str, typing.Type["declarative.Model"], None]


@dataclasses.dataclass
class Relation:
    """
    Describes how a relation field is resolved from the raw source.

    :param RelationType type: ``"one"`` for a single related model, ``"many"`` for a sequence.
    :param model: the related model class, its registered name, or :py:const:`None` to
                  keep the raw related values untouched.
    :param foreign_field: the raw source field holding the related data.
                          Defaults to the name of the owning field.
    """

    type: RelationType
    model: ModelTarget
    foreign_field: typing.Optional[str] = None

    def __post_init__(self):
        self.type = _coerce_enum(RelationType, self.type, "relation type")


@dataclasses.dataclass
class Field:
    type: typing.Optional[FieldType] = None
    relation: typing.Optional[Relation] = None
    save: typing.Union[SaveMode, bool, str, UnspecifiedType] = UNSPECIFIED
    name: typing.Optional[str] = None
    parent: typing.Optional["ModelSchema"] = dataclasses.field(
        default=None, repr=False, compare=False
    )

    @property
    def annotated(self) -> bool:
        return self.type is not None

    @property
    def is_relation(self) -> bool:
        return self.type is FieldType.RELATION

    @property
    def save_mode(self) -> SaveMode:
        return typing.cast(SaveMode, self.save)

    @property
    def foreign_field(self) -> str:
        relation = assert_not_none(self.relation)
        if relation.foreign_field is not None:
            return relation.foreign_field
        return assert_not_none(self.name)

    def bind(self, parent: "ModelSchema", name: str) -> "Field":
        return dataclasses.replace(self, name=name, parent=parent)

    def __post_init__(self):
        if self.type is not None:
            self.type = _coerce_enum(FieldType, self.type, "field type")
        if self.type is FieldType.RELATION:
            if self.relation is None:
                raise InvalidDeclarationError("a relation field must describe its relation")
        elif self.relation is not None:
            raise InvalidDeclarationError(
                f"only relation fields may describe a relation (got type {self.type})"
            )
        self.save = coerce_save_mode(self.save)

    @classmethod
    def one(
        cls,
        model: ModelTarget,
        foreign_field: typing.Optional[str] = None,
        save: typing.Union[SaveMode, bool, str, UnspecifiedType] = UNSPECIFIED,
    ) -> "Field":
        return cls(
            type=FieldType.RELATION,
            relation=Relation(RelationType.ONE, model, foreign_field),
            save=save,
        )

    @classmethod
    def many(
        cls,
        model: ModelTarget,
        foreign_field: typing.Optional[str] = None,
        save: typing.Union[SaveMode, bool, str, UnspecifiedType] = UNSPECIFIED,
    ) -> "Field":
        return cls(
            type=FieldType.RELATION,
            relation=Relation(RelationType.MANY, model, foreign_field),
            save=save,
        )


class ModelSchema:
    """
    A :py:class:`ModelSchema` holds the field table of a model.

    :param str name: The name of the model.
    :param Iterable[Field] fields: The field descriptors, each with its name set.
    :param str reference: The name of the field identifying an instance of the model.
    """

    name: str
    reference: str
    _fields: typing.MutableMapping[str, Field]

    @property
    def fields(self) -> typing.Mapping[str, Field]:
        """
        The mapping of field names to :py:class:`Field`s, in declaration order.
        """
        return self._fields

    @property
    def relations(self) -> typing.Iterator[Field]:
        return (f for f in self._fields.values() if f.is_relation)

    def add_field(self, field: Field) -> None:
        name = assert_not_none(field.name)
        self._fields[name] = field.bind(self, name)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __repr__(self) -> str:
        return f"ModelSchema({self.name!r}, fields={list(self._fields)!r}, reference={self.reference!r})"

    def __init__(
        self,
        name: str,
        fields: typing.Iterable[Field] = (),
        reference: str = "id",
    ) -> None:
        self.name = name
        self.reference = reference
        self._fields = OrderedDict()
        for field in fields:
            self.add_field(field)


if typing.TYPE_CHECKING:
    from . import declarative  # noqa: E402
