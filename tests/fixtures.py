"""
Test fixtures for wiregraph.

This module provides sample provider sources and helper functions
for building types and providers directly.
"""

from wiregraph.models import MethodSignature, Position, Provider, TypeKey

# Sample sources with various provider shapes
SIMPLE_PROVIDERS = '''
class Config:
    """Application settings."""


class Database:
    pass


@provider
def new_config() -> Config:
    """Load the settings."""
    return Config()


@provider
def new_database(config: Config) -> Database:
    return Database(config)
'''

ROOTED_APP = '''
class Config:
    pass


class App:
    def __init__(self, config: Config) -> None:
        self.config = config

    def run(self) -> None:
        """Serve until interrupted."""


@provider
def new_config() -> Config:
    return Config()


@provider
def new_app(config: Config) -> App:
    return App(config)
'''

METHOD_PROVIDER = '''
class Config:
    pass


class Factory:
    @provider
    def make_config(self) -> Config:
        return Config()

    @staticmethod
    @provider
    def default_config() -> Config:
        return Config()
'''

ERROR_RESULTS = '''
class Config:
    pass


@provider
def load_config(path: str) -> tuple[Config, Exception]:
    return Config(), None


@provider
def broken_config(path: str) -> tuple[Exception, Config]:
    return None, Config()
'''

AMBIGUOUS_ROOT = '''
class Server:
    def run(self) -> None: ...


class Worker:
    def run(self) -> None: ...


@provider
def new_pair() -> tuple[Server, Worker]:
    return Server(), Worker()
'''

CYCLIC_PROVIDERS = '''
class App:
    def run(self) -> None: ...


class Left:
    pass


class Right:
    pass


@provider
def new_left(right: Right) -> Left:
    return Left()


@provider
def new_right(left: Left) -> Right:
    return Right()


@provider
def new_app(left: Left) -> App:
    return App()
'''

INHERITED_RUN = '''
class Service:
    def run(self) -> None:
        """Serve until interrupted."""

    def stop(self, timeout: float) -> None:
        pass


class Base(Service):
    def stop(self) -> None:
        pass


class App(Base):
    pass


@provider
def new_app() -> App:
    return App()
'''

ANNOTATED_PARAMETERS = '''
from collections.abc import Mapping
from typing import Optional, Union

import pkg.services as services
from pkg.models import Host, Port


class Config:
    pass


@provider
def everything(
    a: int,
    b: list[Config],
    c: dict[Host, Port],
    d: Optional[Config],
    e: Config | None,
    f: tuple[Config, int],
    g: "Config",
    h: services.Mailer,
    i,
    j: Mapping[str, int],
    k: tuple[Config, ...],
    l: Union[Config, None],
    m: "not valid(",
    n: "",
) -> None:
    pass
'''


def named(name: str, scope: str = "pkg", runnable: bool = False) -> TypeKey:
    """Create a named type, optionally with a nullary ``run`` method."""
    methods = (MethodSignature("run"),) if runnable else ()
    return TypeKey.named(name, scope, methods)


def make_provider(
    name: str,
    params: tuple = (),
    results: tuple = (),
    receiver: TypeKey = None,
    line: int = 1,
) -> Provider:
    """Create a provider descriptor located in ``wiring.py``."""
    return Provider(
        name=name,
        position=Position("wiring.py", line, 0),
        params=tuple(params),
        results=tuple(results),
        receiver=receiver,
    )


INT = TypeKey.basic("int")
BOOL = TypeKey.basic("bool")
