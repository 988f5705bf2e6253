import datetime
import logging
import re
import typing

from .models import FieldType
from .utils import assert_not_none, is_number

logger = logging.getLogger(__name__)

Predicate = typing.Callable[[typing.Any], bool]

EMAIL_PATTERN = re.compile(
    r"^(([^<>()\[\]\\.,;:\s@\"]+(\.[^<>()\[\]\\.,;:\s@\"]+)*)|(\".+\"))@"
    r"((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$"
)


def validate_string(value: typing.Any) -> bool:
    return isinstance(value, str)


def validate_int(value: typing.Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_float(value: typing.Any) -> bool:
    return is_number(value)


def validate_email(value: typing.Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.fullmatch(value) is not None


def validate_date(value: typing.Any) -> bool:
    return isinstance(value, datetime.date)


def always_valid(value: typing.Any) -> bool:
    return True


class ValidatorRegistry:
    """
    Maps a field type tag to the predicate checking values of that type.
    Relations and booleans are not actually checked.

    The built-in ``int`` predicate is stricter than a plain number check: it rejects
    floats, including integral ones such as ``5.0``, and booleans. ``float`` accepts
    any int or float. Register another predicate under ``"int"`` for looser checking.
    """

    _predicates: typing.Dict[str, Predicate]

    def register(self, tag: typing.Union[FieldType, str], predicate: Predicate) -> None:
        self._predicates[tag.value if isinstance(tag, FieldType) else tag] = predicate

    def __getitem__(self, tag: typing.Union[FieldType, str]) -> Predicate:
        return self._predicates[tag.value if isinstance(tag, FieldType) else tag]

    def __contains__(self, tag: object) -> bool:
        return (tag.value if isinstance(tag, FieldType) else tag) in self._predicates

    def __init__(self, predicates: typing.Optional[typing.Mapping[str, Predicate]] = None):
        self._predicates = {
            FieldType.STRING.value: validate_string,
            FieldType.INT.value: validate_int,
            FieldType.EMAIL.value: validate_email,
            FieldType.RELATION.value: always_valid,
            FieldType.BOOLEAN.value: always_valid,
            FieldType.DATE.value: validate_date,
            FieldType.FLOAT.value: validate_float,
        }
        if predicates is not None:
            self._predicates.update(predicates)


default_validators = ValidatorRegistry()


def is_valid(
    instance: "declarative.Model", validators: typing.Optional[ValidatorRegistry] = None
) -> bool:
    """
    Checks every annotated field of a model against the predicate of its type.
    Stops at the first mismatch. Never raises.

    :param Model instance: the model to check.
    :param ValidatorRegistry validators: the predicates to use; defaults to the built-in ones.
    :return: :py:const:`True` if every annotated field holds a valid value.
    """
    validators = validators if validators is not None else default_validators
    schema = type(instance).__schema__
    for name, field in schema.fields.items():
        if not field.annotated:
            continue
        field_type = assert_not_none(field.type)
        if field_type not in validators:
            logger.debug("Model (%s): no validator for type %s", schema.name, field_type.value)
            return False
        try:
            valid = validators[field_type](getattr(instance, name, None))
        except Exception:
            logger.debug("Model (%s): validator for %s raised", schema.name, name, exc_info=True)
            return False
        if not valid:
            logger.debug("Model (%s): field %s is invalid", schema.name, name)
            return False
    return True


if typing.TYPE_CHECKING:
    from . import declarative  # noqa: E402
