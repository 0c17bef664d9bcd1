"""Fluid Flow - 2D stable fluids driven by pointer splats.

Velocity, dye, pressure, divergence and curl grids with:
- Vorticity confinement
- Pressure projection (Jacobi, warm started from damped previous pressure)
- Semi-Lagrangian advection with dissipation
- Gaussian splats from pointer movement
- Display composition with optional shading
"""

import logging
import random
from dataclasses import dataclass
from enum import IntEnum, auto
from typing import Callable, NamedTuple

import numpy as np

from fluidcursor.ConfigBase import ConfigBase, config_field
from fluidcursor.flow.Device import Device, DeviceUnsupportedError, FieldAllocationError
from fluidcursor.flow.Field import DoubleField, FilterMode, GridField, get_resolution
from fluidcursor.flow.FieldStorage import FieldStorage
from fluidcursor.flow.Program import Program
from fluidcursor.flow.pointer import Color, Pointer, PointerMapper
from .shaders import Advect, Clear, Curl, Display, Divergence, GradientSubtract, Pressure, Splat, Vorticity


@dataclass
class FluidFlowConfig(ConfigBase):
    """Configuration for the fluid simulation."""

    # Resolution (changing these needs a new config and initialize())
    sim_resolution: int = config_field(
        128, min=8, max=1024, fixed=True,
        description="Velocity/pressure cells along the shorter surface axis")
    dye_resolution: int = config_field(
        1440, min=8, max=4096, fixed=True,
        description="Dye cells along the shorter surface axis")

    # Dissipation
    density_dissipation: float = config_field(
        3.5, min=0.0, max=10.0, description="Dye decay rate per second")
    velocity_dissipation: float = config_field(
        2.0, min=0.0, max=10.0, description="Velocity decay rate per second")

    # Pressure
    pressure: float = config_field(
        0.1, min=0.0, max=1.0, description="Fraction of last frame's pressure kept as solver start")
    pressure_iterations: int = config_field(
        20, min=1, max=80, description="Jacobi iterations per frame")

    # Vorticity
    curl: float = config_field(
        3.0, min=0.0, max=50.0, description="Vorticity confinement strength")

    # Splats
    splat_radius: float = config_field(
        0.1, min=0.01, max=1.0, description="Splat size")
    splat_force: float = config_field(
        3000.0, min=0.0, max=10000.0, description="Pointer delta to velocity impulse multiplier")

    # Display
    shading: bool = config_field(True, description="Shade dye with a luminance normal")
    paused: bool = config_field(False, description="Stop advancing, keep drawing")
    back_color: tuple[float, float, float] = config_field(
        default_factory=lambda: (0.0, 0.0, 0.0), description="Background when not transparent")
    transparent: bool = config_field(True, description="Leave the background transparent")


class FluidState(IntEnum):
    IDLE =      0
    RUNNING =   auto()
    STOPPED =   auto()


class StepParams(NamedTuple):
    """Config values in effect for one tick."""
    density_dissipation: float
    velocity_dissipation: float
    pressure: float
    pressure_iterations: int
    curl: float
    splat_radius: float
    splat_force: float
    shading: bool
    paused: bool
    back_color: tuple[float, float, float]
    transparent: bool

    @classmethod
    def from_config(cls, config: FluidFlowConfig) -> 'StepParams':
        return cls(
            density_dissipation=float(config.density_dissipation),
            velocity_dissipation=float(config.velocity_dissipation),
            pressure=float(config.pressure),
            pressure_iterations=max(0, int(config.pressure_iterations)),
            curl=float(config.curl),
            splat_radius=float(config.splat_radius),
            splat_force=float(config.splat_force),
            shading=bool(config.shading),
            paused=bool(config.paused),
            back_color=tuple(float(c) for c in config.back_color),  # type: ignore[arg-type]
            transparent=bool(config.transparent),
        )


class FluidFlow:
    """2D stable fluids simulation.

    Fields:
        - velocity (2 channels, linear, double buffered)
        - dye (4 channels, linear, double buffered)
        - pressure (1 channel, nearest, double buffered)
        - divergence, curl (1 channel, nearest)

    Update pipeline (tick):
        1. Splat every moved pointer into velocity and dye
        2. Curl and vorticity confinement
        3. Divergence, pressure warm start, Jacobi solve
        4. Subtract pressure gradient
        5. Advect velocity, then dye along the new velocity
        6. Display dye on the surface
    """

    def __init__(self, device: Device, config: FluidFlowConfig | None = None,
                 rng: random.Random | None = None) -> None:
        self.device: Device = device
        self.config: FluidFlowConfig = config or FluidFlowConfig()

        self._storage: FieldStorage = FieldStorage(device)
        self._pointers: PointerMapper = PointerMapper(rng=rng)
        self._state: FluidState = FluidState.IDLE
        self._surface_size: tuple[int, int] = (0, 0)
        self._frame_params: StepParams | None = None
        self._failed_size: tuple[int, int] | None = None
        self._unwatch: list[Callable[[], None]] = []

        # Fields
        self._velocity: DoubleField | None = None
        self._dye: DoubleField | None = None
        self._pressure: DoubleField | None = None
        self._divergence: GridField | None = None
        self._curl: GridField | None = None

        # Shaders
        self._curl_shader: Curl = Curl()
        self._vorticity_shader: Vorticity = Vorticity()
        self._divergence_shader: Divergence = Divergence()
        self._clear_shader: Clear = Clear()
        self._pressure_shader: Pressure = Pressure()
        self._gradient_shader: GradientSubtract = GradientSubtract()
        self._advect_shader: Advect = Advect()
        self._splat_shader: Splat = Splat()
        self._display_shader: Display = Display()

    # ========== Properties ==========

    @property
    def state(self) -> FluidState:
        return self._state

    @property
    def surface_size(self) -> tuple[int, int]:
        return self._surface_size

    @property
    def aspect_ratio(self) -> float:
        width, height = self._surface_size
        return width / height if height > 0 else 1.0

    @property
    def velocity(self) -> DoubleField:
        return self._require(self._velocity)

    @property
    def dye(self) -> DoubleField:
        return self._require(self._dye)

    @property
    def pressure(self) -> DoubleField:
        return self._require(self._pressure)

    @property
    def divergence(self) -> GridField:
        return self._require(self._divergence)

    @property
    def curl(self) -> GridField:
        return self._require(self._curl)

    @property
    def pointers(self) -> PointerMapper:
        return self._pointers

    @property
    def programs(self) -> list[Program]:
        return [
            self._curl_shader, self._vorticity_shader, self._divergence_shader,
            self._clear_shader, self._pressure_shader, self._gradient_shader,
            self._advect_shader, self._splat_shader, self._display_shader,
        ]

    # ========== Allocation ==========

    def initialize(self, viewport_size: tuple[int, int], config: FluidFlowConfig | None = None) -> None:
        """Compile programs and allocate every field for a surface size.

        Args:
            viewport_size: Surface (width, height) in pixels
            config: Replaces the current config, required to change resolutions

        Raises:
            DeviceUnsupportedError: If a program does not compile
            FieldAllocationError: If the fields cannot be allocated
        """
        if config is not None:
            self.config = config
        self.deallocate()

        width, height = self._clamp_size(viewport_size)
        self.device.resize_surface(width, height)
        self._pointers.resize(width, height)

        try:
            for program in self.programs:
                program.allocate(self.device)
            self._allocate_fields(width, height)
        except Exception:
            self.deallocate()
            raise

        self._surface_size = (width, height)
        self._state = FluidState.RUNNING
        self._unwatch = [
            self.config.watch(self._on_shading_changed, "shading"),
            self.config.watch(self._on_paused_changed, "paused"),
        ]
        self._on_shading_changed(self.config.shading)
        logging.info(
            f"FluidFlow: running on {width}x{height}, "
            f"velocity {self.velocity.width}x{self.velocity.height}, dye {self.dye.width}x{self.dye.height}"
        )

    def deallocate(self) -> None:
        """Release all fields and programs, back to IDLE."""
        for unwatch in self._unwatch:
            unwatch()
        self._unwatch = []
        self._failed_size = None
        self._storage.release_all()
        self._clear_fields()
        for program in self.programs:
            program.deallocate()
        self._state = FluidState.IDLE

    def reset(self) -> None:
        """Zero every simulation field."""
        if self._state is FluidState.IDLE:
            return
        for grid in self._storage.fields:
            self.device.clear(grid, (0.0, 0.0, 0.0, 0.0))

    def _allocate_fields(self, width: int, height: int) -> None:
        self._storage.release_all()
        self._clear_fields()

        sim_width, sim_height = get_resolution(self.config.sim_resolution, width, height)
        dye_width, dye_height = get_resolution(self.config.dye_resolution, width, height)

        try:
            self._dye = self._storage.allocate_double(dye_width, dye_height, 4, FilterMode.LINEAR)
            self._velocity = self._storage.allocate_double(sim_width, sim_height, 2, FilterMode.LINEAR)
            self._divergence = self._storage.allocate(sim_width, sim_height, 1, FilterMode.NEAREST)
            self._curl = self._storage.allocate(sim_width, sim_height, 1, FilterMode.NEAREST)
            self._pressure = self._storage.allocate_double(sim_width, sim_height, 1, FilterMode.NEAREST)
        except FieldAllocationError:
            self._storage.release_all()
            self._clear_fields()
            raise

    def _resize(self, surface_size: tuple[int, int]) -> bool:
        """Reallocate every field for a new surface size; stop after two failures."""
        width, height = self._clamp_size(surface_size)
        self.device.resize_surface(width, height)
        self._pointers.resize(width, height)

        for attempt in range(2):
            try:
                self._allocate_fields(width, height)
            except FieldAllocationError as e:
                logging.error(f"FluidFlow: field allocation attempt {attempt + 1} for {width}x{height} failed: {e}")
                continue
            self._surface_size = (width, height)
            self._failed_size = None
            logging.info(f"FluidFlow: resized to {width}x{height}")
            return True

        self._state = FluidState.STOPPED
        self._failed_size = (width, height)
        logging.error("FluidFlow: no valid fields, simulation stopped")
        return False

    def _clear_fields(self) -> None:
        self._velocity = None
        self._dye = None
        self._pressure = None
        self._divergence = None
        self._curl = None

    # ========== Config Watchers ==========

    def _on_shading_changed(self, shading: bool) -> None:
        """Compile the display variant before the next frame draws with it."""
        keywords: frozenset[str] = frozenset({Display.SHADING}) if shading else frozenset()
        try:
            self.device.compile(self._display_shader, keywords)
        except DeviceUnsupportedError as e:
            logging.error(f"FluidFlow: display variant {sorted(keywords)} unavailable: {e}")

    def _on_paused_changed(self, paused: bool) -> None:
        logging.info(f"FluidFlow: {'paused' if paused else 'resumed'}")

    # ========== Input ==========

    def notify_contact_start(self, pointer_id: int, x: float, y: float) -> None:
        self._pointers.on_contact_start(pointer_id, x, y)

    def notify_contact_move(self, pointer_id: int, x: float, y: float, color: Color | None = None) -> None:
        self._pointers.on_contact_move(pointer_id, x, y, color)

    def notify_contact_end(self, pointer_id: int) -> None:
        self._pointers.on_contact_end(pointer_id)

    def apply_input(self) -> int:
        """Splat every pointer that moved since the last frame. Returns the splat count."""
        params: StepParams = self._params()
        pointer: Pointer
        count: int = 0
        for pointer in self._pointers.consume():
            self.splat(
                pointer.texcoord_x, pointer.texcoord_y,
                pointer.delta_x * params.splat_force, pointer.delta_y * params.splat_force,
                pointer.color
            )
            count += 1
        return count

    def splat(self, x: float, y: float, dx: float, dy: float, color: Color) -> None:
        """Add a velocity impulse (dx, dy) and a dye color at normalized point (x, y)."""
        params: StepParams = self._params()
        radius: float = params.splat_radius / 100.0
        velocity: DoubleField = self.velocity
        dye: DoubleField = self.dye

        self._splat_shader.use(velocity.write, velocity.read, (x, y), (dx, dy, 0.0), radius, self.aspect_ratio)
        velocity.swap()

        self._splat_shader.use(dye.write, dye.read, (x, y), color, radius, self.aspect_ratio)
        dye.swap()

    # ========== Update Pipeline ==========

    def tick(self, dt: float, surface_size: tuple[int, int] | None = None) -> None:
        """Advance one frame and draw it.

        Args:
            dt: Frame time in seconds, negative values are treated as 0
            surface_size: Current surface (width, height); a change reallocates all fields,
                and a size other than the one that failed lets a STOPPED flow retry
        """
        if self._state is FluidState.IDLE:
            return

        if surface_size is not None:
            size: tuple[int, int] = self._clamp_size(surface_size)
            if self._state is FluidState.STOPPED:
                if size != self._failed_size and self._resize(size):
                    self._state = FluidState.RUNNING
            elif size != self._surface_size:
                self._resize(size)

        if self._state is not FluidState.RUNNING:
            return

        self._frame_params = StepParams.from_config(self.config)
        try:
            self.apply_input()
            if not self._frame_params.paused:
                self.step(max(0.0, float(dt)))
            self.render()
        finally:
            self._frame_params = None

    def step(self, dt: float) -> None:
        """Run the fixed kernel sequence once."""
        self.apply_vorticity(dt)
        self.project()
        self.advect(dt)

    def apply_vorticity(self, dt: float) -> None:
        params: StepParams = self._params()
        velocity: DoubleField = self.velocity
        texel_size: tuple[float, float] = velocity.texel_size

        self._curl_shader.use(self.curl, velocity.read, texel_size)

        self._vorticity_shader.use(velocity.write, velocity.read, self.curl, texel_size, params.curl, dt)
        velocity.swap()

    def project(self) -> None:
        """Make velocity (approximately) divergence free."""
        params: StepParams = self._params()
        velocity: DoubleField = self.velocity
        pressure: DoubleField = self.pressure
        texel_size: tuple[float, float] = velocity.texel_size

        self._divergence_shader.use(self.divergence, velocity.read, texel_size)

        self._clear_shader.use(pressure.write, pressure.read, params.pressure)
        pressure.swap()

        for _ in range(params.pressure_iterations):
            self._pressure_shader.use(pressure.write, pressure.read, self.divergence, texel_size)
            pressure.swap()

        self._gradient_shader.use(velocity.write, velocity.read, pressure.read, texel_size)
        velocity.swap()

    def advect(self, dt: float) -> None:
        params: StepParams = self._params()
        velocity: DoubleField = self.velocity
        dye: DoubleField = self.dye
        texel_size: tuple[float, float] = velocity.texel_size

        self._advect_shader.use(velocity.write, velocity.read, velocity.read, texel_size, dt, params.velocity_dissipation)
        velocity.swap()

        self._advect_shader.use(dye.write, velocity.read, dye.read, texel_size, dt, params.density_dissipation)
        dye.swap()

    def render(self) -> None:
        """Compose dye onto the surface."""
        params: StepParams = self._params()
        width, height = self._surface_size

        if params.transparent:
            self.device.clear(None, (0.0, 0.0, 0.0, 0.0))
        else:
            r, g, b = params.back_color
            self.device.clear(None, (r, g, b, 1.0))

        self._display_shader.use(None, self.dye.read, (1.0 / width, 1.0 / height), params.shading)
        self.device.present()

    # ========== Readback ==========

    def compute_divergence(self) -> np.ndarray:
        """Divergence of the current velocity, as a (height, width) array."""
        self._divergence_shader.use(self.divergence, self.velocity.read, self.velocity.texel_size)
        return self.device.read(self.divergence)[..., 0]

    def read(self, grid: GridField | DoubleField | None) -> np.ndarray:
        """Read a field (the read buffer of a double field), or the surface for None."""
        if isinstance(grid, DoubleField):
            grid = grid.read
        return self.device.read(grid)

    # ========== Helpers ==========

    def _params(self) -> StepParams:
        if self._frame_params is not None:
            return self._frame_params
        return StepParams.from_config(self.config)

    def _require(self, value):
        if value is None:
            raise RuntimeError(f"FluidFlow is {self._state.name}, fields are not allocated")
        return value

    @staticmethod
    def _clamp_size(size: tuple[int, int]) -> tuple[int, int]:
        width, height = size
        return max(1, int(width)), max(1, int(height))
