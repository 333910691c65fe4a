import os
from typing import Any, TypeVar

from dotenv import dotenv_values

from .env import Env

T = TypeVar("T", bound=Env)


def load_env(
    env_type: type[T] = Env,
    env_file: str | None = ".env",
    overrides: dict[str, Any] | None = None,
) -> T:
    """
    Build an Env from the process environment, then a dotenv file, then
    explicit overrides. Later sources win. Unknown and empty variables are
    ignored.
    """
    converters = env_type.types_map()

    sources: list[dict[str, str | None]] = [dict(os.environ)]
    if env_file and os.path.exists(env_file):
        sources.append(dotenv_values(dotenv_path=env_file))

    values: dict[str, Any] = {}
    for source in sources:
        for name, raw in source.items():
            convert = converters.get(name)
            if convert is None or not raw:
                continue

            values[name] = convert(raw)

    if overrides:
        values.update(overrides)

    return env_type(**values)
