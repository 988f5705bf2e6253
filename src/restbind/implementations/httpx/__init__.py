from .transport import HTTPXTransport  # noqa
