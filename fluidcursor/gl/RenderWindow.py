import logging
import time
from enum import Enum
from threading import Thread, Lock, current_thread
from typing import Callable, Optional

import glfw
import OpenGL.GL as gl

from fluidcursor.gl.Utils import FpsCounter


class Button(Enum):
    NONE =      0   # cursor moved
    LEFT_DOWN = 1
    LEAVE =     2   # cursor left the window

MouseCallback = Callable[[float, float, Button], None]
KeyCallback = Callable[[bytes], None]


class RenderWindow():
    """GLFW window that owns a GL context on its own render thread.

    Subclasses override allocate(), draw() and deallocate(); all three run on
    the render thread. Mouse positions are reported in framebuffer pixels with
    a top-left origin. ESC closes the window, F toggles fullscreen, other
    printable keys go to the key callbacks.
    """

    def __init__(self, width: int, height: int, name: str, fullscreen: bool = False, v_sync: bool = True,
                 fps: int | None = None, posX: int = 0, posY: int = 0, monitor_id: int = 0) -> None:
        if not glfw.init():
            raise RuntimeError("Failed to initialize GLFW")

        self.name: str = name
        self.window_size: tuple[int, int] = (width, height)
        self.framebuffer_size: tuple[int, int] = (width, height)
        self.window_pos: tuple[int, int] = (posX, posY)
        self.monitor_id: int = monitor_id
        self.fullscreen: bool = fullscreen

        # a fixed frame rate replaces v-sync
        self.frame_period: float | None = 1.0 / fps if fps and fps > 0 else None
        self.v_sync: bool = v_sync and self.frame_period is None

        self.fps = FpsCounter()
        self.cursor: tuple[float, float] = (0.0, 0.0)

        self.window: Optional[glfw._GLFWwindow] = None
        self.monitor: Optional[glfw._GLFWmonitor] = None
        self.render_thread: Thread | None = None
        self.callback_lock = Lock()
        self.exit_callbacks: set[Callable[[], None]] = set()
        self.mouse_callbacks: set[MouseCallback] = set()
        self.key_callbacks: set[KeyCallback] = set()

    @property
    def surface_size(self) -> tuple[int, int]:
        return self.framebuffer_size

    # ========== Thread ==========

    def start(self) -> None:
        if self.render_thread is None or not self.render_thread.is_alive():
            self.render_thread = Thread(target=self.run, daemon=False)
            self.render_thread.start()

    def stop(self) -> None:
        thread = self.render_thread
        if thread is None or not thread.is_alive() or thread is current_thread():
            return

        self.clearCallbacks()
        if self.window:
            glfw.set_window_should_close(self.window, True)
            glfw.post_empty_event()

        thread.join(timeout=2.0)
        if thread.is_alive():
            logging.warning("RenderWindow: render thread did not stop")

    def run(self) -> None:
        try:
            self._open()
            self.allocate()
            self._loop()
        except Exception as e:
            logging.exception(f"RenderWindow: render thread failed: {e}")
        finally:
            self.deallocate()
            self._close()

    def allocate(self) -> None:
        """Create GL resources."""

    def deallocate(self) -> None:
        """Release GL resources."""

    def draw(self) -> None:
        pass

    # ========== Window ==========

    def _open(self) -> None:
        glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 4)
        glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 6)
        glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_COMPAT_PROFILE)
        glfw.window_hint(glfw.RESIZABLE, glfw.TRUE)

        width, height = self.window_size
        self.window = glfw.create_window(width, height, self.name, None, None)
        if not self.window:
            raise RuntimeError("Failed to create GLFW window")

        monitors = glfw.get_monitors()
        self.monitor = monitors[self.monitor_id] if 0 <= self.monitor_id < len(monitors) else glfw.get_primary_monitor()
        offset_x, offset_y = glfw.get_monitor_pos(self.monitor)
        glfw.set_window_pos(self.window, self.window_pos[0] + offset_x, self.window_pos[1] + offset_y)

        glfw.make_context_current(self.window)
        glfw.swap_interval(1 if self.v_sync else 0)
        self.framebuffer_size = glfw.get_framebuffer_size(self.window)

        glfw.set_framebuffer_size_callback(self.window, self._on_framebuffer_size)
        glfw.set_key_callback(self.window, self._on_key)
        glfw.set_cursor_pos_callback(self.window, self._on_cursor_pos)
        glfw.set_cursor_enter_callback(self.window, self._on_cursor_enter)
        glfw.set_mouse_button_callback(self.window, self._on_mouse_button)

        if self.fullscreen:
            self.fullscreen = False
            self.toggle_fullscreen()

    def _close(self) -> None:
        if self.window:
            glfw.destroy_window(self.window)
            self.window = None
        glfw.terminate()

        with self.callback_lock:
            callbacks = list(self.exit_callbacks)
        for callback in callbacks:
            callback()

    def toggle_fullscreen(self) -> None:
        if not self.window:
            return
        self.fullscreen = not self.fullscreen

        if self.fullscreen:
            self.window_size = glfw.get_window_size(self.window)
            self.window_pos = glfw.get_window_pos(self.window)
            mode = glfw.get_video_mode(self.monitor)
            glfw.set_window_monitor(self.window, self.monitor, 0, 0, mode.size.width, mode.size.height, mode.refresh_rate)
        else:
            glfw.set_window_monitor(self.window, None, *self.window_pos, *self.window_size, 0)

    # ========== Frames ==========

    def _loop(self) -> None:
        deadline: float = time.perf_counter()
        while not glfw.window_should_close(self.window):
            self._frame()
            glfw.poll_events()
            if self.frame_period is not None:
                deadline = self._wait_until(deadline + self.frame_period)

    def _wait_until(self, deadline: float) -> float:
        """Sleep until deadline and return it, or now when more than a frame late."""
        now: float = time.perf_counter()
        if now - deadline > self.frame_period:  # type: ignore[operator]
            return now
        if deadline > now:
            time.sleep(deadline - now)
        return deadline

    def _frame(self) -> None:
        glfw.set_window_title(self.window, f'{self.name} - FPS: {self.fps.get_fps()} (Min: {self.fps.get_min_fps()})')

        width, height = self.framebuffer_size
        gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, 0)
        gl.glViewport(0, 0, width, height)
        gl.glClearColor(0.0, 0.0, 0.0, 1.0)
        gl.glClear(gl.GL_COLOR_BUFFER_BIT)  # type: ignore
        try:
            self.draw()
        except Exception as e:
            logging.error(f"RenderWindow: draw failed: {e}")

        glfw.swap_buffers(self.window)
        self.fps.tick()

    # ========== GLFW Callbacks ==========

    def _on_framebuffer_size(self, window, width: int, height: int) -> None:
        if width > 0 and height > 0:
            self.framebuffer_size = (width, height)

    def _on_key(self, window, key: int, scancode: int, action: int, mods: int) -> None:
        if action == glfw.RELEASE:
            return
        if key == glfw.KEY_ESCAPE:
            glfw.set_window_should_close(self.window, True)
        elif key == glfw.KEY_F:
            self.toggle_fullscreen()
        elif 32 <= key <= 126:
            for callback in list(self.key_callbacks):
                callback(bytes([key]))

    def _on_cursor_pos(self, window, x: float, y: float) -> None:
        window_width, window_height = glfw.get_window_size(self.window)
        width, height = self.framebuffer_size
        scale_x: float = width / window_width if window_width > 0 else 1.0
        scale_y: float = height / window_height if window_height > 0 else 1.0
        self.cursor = (x * scale_x, y * scale_y)
        self._notify_mouse(Button.NONE)

    def _on_cursor_enter(self, window, entered: int) -> None:
        if not entered:
            self._notify_mouse(Button.LEAVE)

    def _on_mouse_button(self, window, button: int, action: int, mods: int) -> None:
        if button == glfw.MOUSE_BUTTON_LEFT and action == glfw.PRESS:
            self._notify_mouse(Button.LEFT_DOWN)

    def _notify_mouse(self, button: Button) -> None:
        x, y = self.cursor
        for callback in list(self.mouse_callbacks):
            callback(x, y, button)

    # ========== Registration ==========

    def addMouseCallback(self, callback: MouseCallback) -> None:
        with self.callback_lock:
            self.mouse_callbacks.add(callback)

    def addKeyboardCallback(self, callback: KeyCallback) -> None:
        with self.callback_lock:
            self.key_callbacks.add(callback)

    def addExitCallback(self, callback: Callable[[], None]) -> None:
        with self.callback_lock:
            self.exit_callbacks.add(callback)

    def clearCallbacks(self) -> None:
        with self.callback_lock:
            self.mouse_callbacks.clear()
            self.key_callbacks.clear()
            self.exit_callbacks.clear()
