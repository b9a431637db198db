import os
from typing import Callable, Dict, Mapping, TypeVar

from dotenv import dotenv_values
from pydantic import BaseModel

from .env import Env, PrimaryType

T = TypeVar("T", bound=BaseModel)


def _coerce(
    source: Mapping[str, str | None],
    types: Mapping[str, Callable[[str], PrimaryType]],
) -> Dict[str, PrimaryType]:
    return {
        name: types[name](value)
        for name, value in source.items()
        if name in types and value
    }


def load_env(
    default: type[Env] = Env,
    env_file: str | None = None,
    override: T | None = None,
) -> T:
    """
    Build settings from, lowest precedence first: model defaults, the
    process environment, a dotenv file (``.env`` unless given) and the
    fields explicitly set on ``override``. Names the model does not
    declare are ignored.
    """
    types = default.types_map()
    values = _coerce(os.environ, types)

    if env_file is None:
        env_file = ".env"

    if os.path.isfile(env_file):
        values.update(
            _coerce(dotenv_values(dotenv_path=env_file), types)
        )

    if override is not None:
        values.update(override.model_dump(exclude_unset=True))
        default = type(override)

    return default(**values)
