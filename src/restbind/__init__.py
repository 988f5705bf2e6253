from .api import Api, ApiClient, EndpointConfig  # noqa
from .declarative import Model, ModelState, WriteIntent  # noqa
from .endpoint import Endpoint, ResultList, Route  # noqa
from .exceptions import (  # noqa
    CircularReferenceError,
    InvalidDeclarationError,
    ModelStateError,
    PaginationUnavailableError,
    ResponseError,
    RestBindException,
    UnknownModelError,
)
from .mapper import Mapper, ModelRegistry, default_registry, register  # noqa
from .models import Field, FieldType, Relation, RelationType, SaveMode  # noqa
from .pagination import Pagination, calculate_pagination  # noqa
from .validators import ValidatorRegistry, is_valid  # noqa
