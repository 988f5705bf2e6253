import collections.abc
import dataclasses
import logging
import typing

from .declarative import Model, ModelState
from .exceptions import CircularReferenceError, ModelStateError, UnknownModelError
from .models import Field, ModelTarget, RelationType, SaveMode
from .utils import assert_not_none

logger = logging.getLogger(__name__)

Tm = typing.TypeVar("Tm", bound=Model)

MappedResult = typing.Union[Model, typing.List[Model]]


class ModelRegistry:
    """
    Maps model names to model classes. Relations and endpoints that name their
    target model by string are resolved through a registry.
    """

    _models: typing.Dict[str, typing.Type[Model]]

    def register(
        self, model: typing.Type[Tm], name: typing.Optional[str] = None
    ) -> typing.Type[Tm]:
        self._models[name or model.__schema__.name] = model
        return model

    def query(self, name: str) -> typing.Type[Model]:
        try:
            return self._models[name]
        except KeyError:
            raise UnknownModelError(name, self._models.keys())

    def resolve(self, target: typing.Union[str, typing.Type[Model]]) -> typing.Type[Model]:
        if isinstance(target, str):
            return self.query(target)
        return target

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __init__(self, models: typing.Iterable[typing.Type[Model]] = ()):
        self._models = {}
        for model in models:
            self.register(model)


default_registry = ModelRegistry()


def register(model: typing.Type[Tm]) -> typing.Type[Tm]:
    """
    Class decorator registering a model in the default registry.
    """
    return default_registry.register(model)


@dataclasses.dataclass
class MappingContext:
    raw: typing.Any


@dataclasses.dataclass
class CleaningContext:
    ancestors: typing.List[Model] = dataclasses.field(default_factory=list)
    cleaned: typing.Dict[int, typing.Dict[str, typing.Any]] = dataclasses.field(
        default_factory=dict
    )
    visited: typing.List[Model] = dataclasses.field(default_factory=list)

    def enter(self, model: Model) -> None:
        if any(model is a for a in self.ancestors):
            path = [type(a).__name__ for a in self.ancestors] + [type(model).__name__]
            raise CircularReferenceError(path)
        self.ancestors.append(model)

    def leave(self) -> None:
        self.ancestors.pop()


def is_array(value: typing.Any) -> bool:
    return isinstance(value, collections.abc.Sequence) and not isinstance(
        value, (str, bytes, bytearray)
    )


def reference_only(value: typing.Any) -> typing.Any:
    """
    Reduces a related value to its identifier field only.
    """
    if isinstance(value, Model):
        ref = type(value).__schema__.reference
        return {ref: getattr(value, ref)} if getattr(value, ref, None) is not None else {}
    elif isinstance(value, collections.abc.Mapping):
        return {"id": value["id"]} if "id" in value else {}
    elif is_array(value):
        return [reference_only(v) for v in value]
    else:
        return value


class Mapper:
    registry: ModelRegistry

    def _resolve_model(self, target: ModelTarget) -> typing.Type[Model]:
        return self.registry.resolve(assert_not_none(target))

    def _map_many(self, field: Field, foreign: typing.Any) -> typing.List[typing.Any]:
        if not foreign:
            return []
        relation = assert_not_none(field.relation)
        if relation.model is None:
            return list(foreign)
        model = self._resolve_model(relation.model)
        return [self.init(model(), value) for value in foreign]

    def _map_one(self, field: Field, foreign: typing.Any) -> typing.Any:
        relation = assert_not_none(field.relation)
        if relation.model is None:
            return foreign
        model = self._resolve_model(relation.model)
        return self.init(model(), foreign)

    def _map_relation(self, ctx: MappingContext, instance: Model, field: Field) -> None:
        name = assert_not_none(field.name)
        relation = assert_not_none(field.relation)
        foreign_field = field.foreign_field
        if foreign_field not in ctx.raw:
            # unresolved: never leave the unmapped raw value behind
            setattr(instance, name, [] if relation.type is RelationType.MANY else None)
            return

        foreign = ctx.raw[foreign_field]
        if foreign is None:
            setattr(instance, name, None)
            return

        if relation.type is RelationType.MANY:
            setattr(instance, name, self._map_many(field, foreign))
        elif relation.type is RelationType.ONE:
            setattr(instance, name, self._map_one(field, foreign))
        else:
            raise AssertionError("should never get here!")

    def init(self, instance: Tm, raw: typing.Any) -> Tm:
        """
        Maps a raw object onto an empty model instance, resolving its relations.

        :param Model instance: the instance to populate.
        :param Any raw: the raw object as decoded from the backend response.
        :return: the populated instance.
        """
        ctx = MappingContext(raw=raw)
        schema = type(instance).__schema__
        logger.debug("Model (%s): raw response object is: %r", schema.name, raw)

        is_mapping = isinstance(raw, collections.abc.Mapping)
        for name in schema.fields:
            setattr(instance, name, raw[name] if is_mapping and name in raw else None)

        if is_mapping:
            for field in schema.relations:
                if field.name in raw:
                    self._map_relation(ctx, instance, field)

        instance.after_load()
        instance._state = ModelState.LOADED
        return instance

    def map_result(
        self,
        model: typing.Union[str, typing.Type[Model]],
        raw: typing.Any,
        container: typing.Optional[str] = None,
    ) -> MappedResult:
        """
        Maps a response body to one model, or to a list of models when the body is an array
        or holds one under ``container``.
        """
        model_class = self.registry.resolve(model)
        logger.debug("Mapper (%s): container set to %s", model_class.__schema__.name, container)

        items: typing.Optional[typing.Sequence[typing.Any]] = None
        if is_array(raw):
            items = raw
        elif (
            container is not None
            and isinstance(raw, collections.abc.Mapping)
            and is_array(raw.get(container))
        ):
            items = raw[container]

        result: MappedResult
        if items is not None:
            logger.debug("Mapper (%s): result is an array", model_class.__schema__.name)
            result = [self.init(model_class(), value) for value in items]
        else:
            logger.debug("Mapper (%s): result is NOT an array", model_class.__schema__.name)
            result = self.init(model_class(), raw)

        logger.debug("Mapper (%s): mapped result is: %r", model_class.__schema__.name, result)
        return result

    def _clean_related(self, ctx: CleaningContext, value: typing.Any) -> typing.Any:
        if isinstance(value, Model):
            return self._clean(ctx, value)
        return value

    def _clean(self, ctx: CleaningContext, instance: Model) -> typing.Dict[str, typing.Any]:
        if id(instance) in ctx.cleaned:
            return ctx.cleaned[id(instance)]
        if instance.state is ModelState.CLEANED:
            raise ModelStateError(instance, "has already been cleaned")

        ctx.enter(instance)
        instance.before_save()

        payload: typing.Dict[str, typing.Any] = {}
        for name, field in type(instance).__schema__.fields.items():
            value = getattr(instance, name)
            if value is None:
                continue

            if field.save_mode is SaveMode.OMIT:
                continue
            if field.save_mode is SaveMode.REFERENCE:
                payload[name] = reference_only(value)
                continue

            if field.is_relation:
                relation = assert_not_none(field.relation)
                if relation.type is RelationType.ONE:
                    payload[name] = self._clean_related(ctx, value)
                    continue
                if relation.type is RelationType.MANY and is_array(value):
                    payload[name] = [self._clean_related(ctx, v) for v in value]
                    continue

            payload[name] = value

        ctx.leave()
        ctx.visited.append(instance)
        ctx.cleaned[id(instance)] = payload
        return payload

    def clean(self, instance: Model) -> typing.Dict[str, typing.Any]:
        """
        Prepares a model for a write: runs :py:meth:`Model.before_save`, drops null fields,
        applies the per-field save directives and recurses into relations.

        Cleaning is a one-way transition; cleaning the same instance twice raises
        :py:class:`ModelStateError`. The instances of the graph only become
        :py:attr:`ModelState.CLEANED` once the whole graph has been cleaned, so a
        failed clean can be retried.

        :param Model instance: the model to clean.
        :return: the payload to send to the backend.
        """
        ctx = CleaningContext()
        payload = self._clean(ctx, instance)
        for visited in ctx.visited:
            visited._write_intent = None
            visited._state = ModelState.CLEANED
        logger.debug("Model (%s): cleaned payload is: %r", type(instance).__schema__.name, payload)
        return payload

    def __init__(self, registry: typing.Optional[ModelRegistry] = None):
        self.registry = registry if registry is not None else default_registry


default_mapper = Mapper()
