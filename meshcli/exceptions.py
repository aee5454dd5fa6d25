class BaseMeshException(Exception):
    """
    Base exception that can take an error message and context information.
    """

    message: str
    context: dict
    default_message = "An error occurred."

    def __init__(self, message: str = default_message, **kwargs):
        self.message = message.format(**kwargs)
        self.context = dict(**kwargs)
        super().__init__()

    def __str__(self):
        return str(dict(message=self.message, context=self.context))

    @property
    def user_msg(self):
        return self.message

    def update_context(self, **kwargs):
        self.context.update(dict(**kwargs))


class UsageError(BaseMeshException):
    pass


class ConfigError(BaseMeshException):
    pass


class ConfigReadError(ConfigError):
    pass


class ConfigParseError(ConfigError):
    pass


class InvalidUrlError(BaseMeshException):
    pass


class InvalidEndpointError(InvalidUrlError):
    pass


class InvalidPathError(InvalidUrlError):
    pass


class TransportBuildError(BaseMeshException):
    pass


class UnsupportedResourceError(BaseMeshException):
    pass


class RemoteCallError(BaseMeshException):
    pass
