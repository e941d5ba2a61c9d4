from .base import Handler
from .request import RequestHandler
from .script import ScriptHandler

__all__ = ["Handler", "RequestHandler", "ScriptHandler"]
