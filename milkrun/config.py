from pydantic import PositiveFloat
from pydantic_settings import BaseSettings, SettingsConfigDict

from .resource import Kind, OnError


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MILKRUN_")

    request_on_error: OnError = OnError.ABORT
    """Failure policy for Request resources. Aborting stops the remainder of the run."""

    script_on_error: OnError = OnError.CONTINUE
    """Failure policy for Script resources. Continuing logs the error and moves on."""

    resource_timeout: PositiveFloat | None = None
    """Max time in seconds a single resource may run. Unbounded if unset."""

    http_timeout: PositiveFloat = 30.0
    """ Timeout in seconds applied by the HTTP client to each request."""

    verify_tls: bool = True
    """Whether the HTTP client verifies TLS certificates."""

    log_level: str = "INFO"
    """Root log level used by the command line interface."""

    def on_error(self, kind: Kind) -> OnError:
        return (
            self.request_on_error if kind is Kind.REQUEST else self.script_on_error
        )
