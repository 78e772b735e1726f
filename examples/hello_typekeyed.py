from typing import Annotated, NewType

import numpy as np

from typekeyed import TypeKeyedRegistry, TypeToken, key

SessionId = NewType("SessionId", str)

POSITIONS = TypeToken.array(np.float32, ndim=2)
COLORS = TypeToken.array(np.uint8, ndim=2)


class Scene:
    """Owns a registry instead of reaching for module-level state."""

    def __init__(self, registry: TypeKeyedRegistry) -> None:
        self.registry = registry

    def log_points(self, name: str, positions: np.ndarray, colors: np.ndarray) -> None:
        self.registry.put(key(POSITIONS, name), positions)
        self.registry.put(key(COLORS, name), colors)

    def point_count(self, name: str) -> int:
        return int(self.registry[key(POSITIONS, name)].shape[0])


def main() -> None:
    registry = TypeKeyedRegistry()
    scene = Scene(registry)

    rng = np.random.default_rng(0)
    positions = rng.standard_normal((1000, 3)).astype(np.float32)
    colors = (rng.random((1000, 3)) * 255).astype(np.uint8)
    scene.log_points("sphere", positions, colors)

    registry.put(SessionId, SessionId("abc123"))
    registry.put(key(str, "title"), "hello typekeyed")
    registry.put(Annotated[str, "units"], "meters")

    print(f"points: {scene.point_count('sphere')}")
    print(f"session: {registry.get(SessionId).unwrap()}")
    print(f"plain str slot present: {registry.contains(str)}")
    for k in registry.keys():
        print(f"  {k}")


if __name__ == "__main__":
    main()
