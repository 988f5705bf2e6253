from .formatting import english_enumerate  # noqa
from .types import UNSPECIFIED, UnspecifiedType, maybe_unspecified  # noqa
from .typing import assert_not_none, is_number  # noqa
