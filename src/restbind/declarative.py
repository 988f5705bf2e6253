import collections.abc
import copy
import dataclasses
import enum
import typing

from .exceptions import InvalidDeclarationError
from .models import Field, ModelSchema
from .navigation import Navigable

RESERVED_NAMES = frozenset(
    [
        "after_load",
        "attach_navigation",
        "before_save",
        "clean",
        "endpoint",
        "from_raw",
        "is_valid",
        "navigation",
        "next",
        "page",
        "pagination",
        "previous",
        "reference",
        "state",
        "to_dict",
        "write_intent",
    ]
)


class ModelState(enum.Enum):
    NEW = "new"
    LOADED = "loaded"
    CLEANED = "cleaned"


class WriteIntent(enum.Enum):
    SAVE = "save"
    UPDATE = "update"
    REMOVE = "remove"


@dataclasses.dataclass
class Meta:
    name: typing.Optional[str] = None
    reference: typing.Optional[str] = None
    fields: typing.Mapping[str, Field] = dataclasses.field(default_factory=dict)


def handle_meta(meta: typing.Optional[typing.Type]) -> Meta:
    if meta is None:
        return Meta()
    attrs = {k: v for k, v in vars(meta).items() if not k.startswith("__")}
    fields = attrs.get("fields", {})
    if not isinstance(fields, collections.abc.Mapping):
        raise InvalidDeclarationError("Meta.fields must be a mapping of names to Field")
    return Meta(
        name=attrs.get("name"),
        reference=attrs.get("reference"),
        fields=fields,
    )


def _check_field_name(model_name: str, name: str) -> None:
    if name.startswith("_"):
        raise InvalidDeclarationError(f"field {name} of {model_name} must not start with '_'")
    if name in RESERVED_NAMES:
        raise InvalidDeclarationError(f"field {name} of {model_name} shadows a model method")


def build_schema(cls: typing.Type["Model"]) -> ModelSchema:
    meta = handle_meta(vars(cls).get("Meta"))
    parent_schema: typing.Optional[ModelSchema] = None
    for base in cls.__mro__[1:]:
        if "__schema__" in vars(base):
            parent_schema = vars(base)["__schema__"]
            break

    name = meta.name or cls.__name__
    reference = meta.reference or (parent_schema.reference if parent_schema else "id")
    declared: typing.Dict[str, Field] = {}
    if parent_schema is not None:
        declared.update(parent_schema.fields)
    for k, v in vars(cls).items():
        if isinstance(v, Field):
            declared[k] = v
    declared.update(meta.fields)

    schema = ModelSchema(name=name, reference=reference)
    for field_name, field in declared.items():
        if not isinstance(field, Field):
            raise InvalidDeclarationError(f"declaration of {field_name} in {name} is not a Field")
        _check_field_name(name, field_name)
        schema.add_field(dataclasses.replace(field, name=field_name))
    return schema


class Model(Navigable):
    """
    Base class for models. Fields are declared as class attributes holding
    :py:class:`Field` objects, or through a ``Meta.fields`` mapping::

        class User(Model):
            id = Field("int")
            name = Field("string")
            address = Field.one("Address")
            groups = Field.many("Group", save="reference")

            class Meta:
                reference = "id"

    Unlike a declared field, the schema of a model is consulted through
    :py:attr:`__schema__`; instances only carry field values.
    """

    __schema__: typing.ClassVar[ModelSchema] = ModelSchema("Model")

    _state: ModelState = ModelState.NEW
    _write_intent: typing.Optional[WriteIntent] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.__schema__ = build_schema(cls)

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def write_intent(self) -> typing.Optional[WriteIntent]:
        return self._write_intent

    @write_intent.setter
    def write_intent(self, value: typing.Union[WriteIntent, str, None]) -> None:
        self._write_intent = WriteIntent(value) if value is not None else None

    @property
    def reference(self) -> typing.Any:
        return getattr(self, type(self).__schema__.reference, None)

    def after_load(self) -> None:
        """
        Called after a raw object has been mapped onto this model.
        Override it to remap or derive fields.
        """

    def before_save(self) -> None:
        """
        Called right before this model is cleaned for a write.
        :py:attr:`write_intent` tells which operation triggered it.
        """

    @classmethod
    def from_raw(cls, raw: typing.Any, mapper: typing.Optional["mapper_.Mapper"] = None):
        from .mapper import default_mapper

        return (mapper or default_mapper).init(cls(), raw)

    def clean(self, mapper: typing.Optional["mapper_.Mapper"] = None) -> typing.Dict[str, typing.Any]:
        from .mapper import default_mapper

        return (mapper or default_mapper).clean(self)

    def is_valid(self, validators: typing.Optional["validators_.ValidatorRegistry"] = None) -> bool:
        from .validators import is_valid

        return is_valid(self, validators)

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        def _(value):
            if isinstance(value, Model):
                return value.to_dict()
            elif isinstance(value, list):
                return [_(v) for v in value]
            else:
                return value

        return {name: _(getattr(self, name)) for name in type(self).__schema__.fields}

    def _values(self) -> typing.Tuple[typing.Any, ...]:
        return tuple(getattr(self, name) for name in type(self).__schema__.fields)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._values() == typing.cast(Model, other)._values()

    __hash__ = object.__hash__

    def __deepcopy__(self, memo) -> "Model":
        clone = type(self)()
        memo[id(self)] = clone
        for name in type(self).__schema__.fields:
            setattr(clone, name, copy.deepcopy(getattr(self, name), memo))
        clone._state = self._state
        clone._write_intent = self._write_intent
        return clone

    def __repr__(self) -> str:
        values = ", ".join(
            f"{name}={getattr(self, name)!r}" for name in type(self).__schema__.fields
        )
        return f"{type(self).__name__}({values})"

    def __init__(self, **values: typing.Any) -> None:
        schema = type(self).__schema__
        unknown = [k for k in values if k not in schema]
        if unknown:
            raise TypeError(f"{type(self).__name__} has no field(s) {', '.join(unknown)}")
        for name in schema.fields:
            setattr(self, name, values.get(name))


if typing.TYPE_CHECKING:
    from . import mapper as mapper_  # noqa: E402
    from . import validators as validators_  # noqa: E402
