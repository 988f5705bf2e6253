import typing


class UnspecifiedType:
    _singleton: typing.ClassVar[typing.Optional["UnspecifiedType"]] = None

    def __bool__(self):
        return False

    def __repr__(self) -> str:
        return "UNSPECIFIED"

    def __copy__(self) -> "UnspecifiedType":
        return self

    def __deepcopy__(self, memo) -> "UnspecifiedType":
        return self

    def __new__(cls) -> "UnspecifiedType":
        if cls._singleton is None:
            cls._singleton = object.__new__(cls)
        return cls._singleton


UNSPECIFIED = UnspecifiedType()

T = typing.TypeVar("T")


def maybe_unspecified(maybe: typing.Union[UnspecifiedType, T], default: T) -> T:
    return typing.cast(T, maybe) if maybe is not UNSPECIFIED else default
