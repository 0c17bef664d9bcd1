from dataclasses import dataclass, field
from typing import Any, TypeVar, cast
from typing_extensions import get_args, get_origin

from enum import Enum
import json
import dataclasses

from fluidcursor.flow.fluid import FluidFlowConfig

T = TypeVar("T")


@dataclass
class WindowSettings():
    title: str          = 'Fluid Cursor'
    width: int          = 1280
    height: int         = 720
    fullscreen: bool    = False
    v_sync: bool        = True
    fps: int            = 0         # 0: follow v-sync
    monitor_id: int     = 0
    pos_x: int          = 100
    pos_y: int          = 100


@dataclass
class Settings():
    # WINDOW
    window: WindowSettings = field(default_factory=WindowSettings)

    # SIMULATION
    fluid: FluidFlowConfig = field(default_factory=FluidFlowConfig)

    def save(self, path: str) -> None:
        with open(path, "w") as f:
            json.dump(Settings.serialize(self), f, indent=2)

    @classmethod
    def load(cls, path: str) -> 'Settings':
        with open(path, "r") as f:
            data = json.load(f)
        return Settings.deserialize(data, Settings)

    @staticmethod
    def serialize(obj) -> Any:
        if isinstance(obj, Enum):
            return obj.name
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return {f.name: Settings.serialize(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
        if isinstance(obj, dict):
            return {k: Settings.serialize(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [Settings.serialize(v) for v in obj]
        return obj

    @staticmethod
    def deserialize(data: Any, target_type: type[T]) -> T:
        if dataclasses.is_dataclass(target_type):
            fields: tuple[dataclasses.Field[Any], ...] = dataclasses.fields(target_type)
            field_types: dict[str, Any] = {f.name: f.type for f in fields if f.init}
            kwargs: dict[str, Any] = {}
            for key, value in data.items():
                if key in field_types:
                    field_type: Any = field_types[key]
                    if isinstance(field_type, str):
                        kwargs[key] = value
                    else:
                        kwargs[key] = Settings.deserialize(value, field_type)
            return cast(T, target_type(**kwargs))

        origin: Any = get_origin(target_type)
        args: tuple[Any, ...] = get_args(target_type)
        if origin is list:
            if args:
                return cast(T, [Settings.deserialize(item, args[0]) for item in data])
            return cast(T, list(data))
        if origin is tuple:
            if args and len(args) == len(data):
                return cast(T, tuple(Settings.deserialize(item, item_type) for item, item_type in zip(data, args)))
            return cast(T, tuple(data))

        if isinstance(target_type, type) and issubclass(target_type, Enum):
            return target_type[data]

        if target_type is float and isinstance(data, int):
            return cast(T, float(data))

        return cast(T, data)
