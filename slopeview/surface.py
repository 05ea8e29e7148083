"""TerrainSurface: owns one mesh's render buffers and renderable handle.

A surface moves EMPTY -> BUILT -> (BUILT ...) -> DESTROYED.  Rebuilding
releases the previous buffers before binding new ones, so a surface never
holds two live buffer sets.  All mutations should go through a
RenderLoop so frames never observe a half-swapped surface.
"""

import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Dict, Optional, Tuple

import trimesh

from .errors import SurfaceDestroyedError
from .mesh import to_trimesh, validate_mesh
from .models import Mesh

logger = logging.getLogger(__name__)


class SurfaceState(str, Enum):
    empty = "empty"
    built = "built"
    destroyed = "destroyed"


class RenderBackend:
    """Sink that turns a Mesh into renderer-owned buffers.

    ``create`` returns an opaque handle; ``release`` frees everything the
    handle owns.
    """

    def create(self, mesh: Mesh):
        raise NotImplementedError

    def release(self, handle) -> None:
        raise NotImplementedError


class SceneBackend(RenderBackend):
    """Render backend that keeps each surface as a node in a trimesh.Scene."""

    def __init__(self, scene: Optional[trimesh.Scene] = None, material=None):
        self.scene = scene if scene is not None else trimesh.Scene()
        self.material = material
        self.live: Dict[str, Mesh] = {}
        self._counter = itertools.count(1)

    def create(self, mesh: Mesh) -> str:
        name = f"terrain_{next(self._counter)}"
        tm = to_trimesh(mesh, material=self.material)
        self.scene.add_geometry(tm, node_name=name, geom_name=name)
        self.live[name] = mesh
        logger.debug(f"Bound {name}: {mesh.vertex_count} verts, "
                     f"{mesh.triangle_count} faces")
        return name

    def release(self, handle: str) -> None:
        if self.live.pop(handle, None) is None:
            return
        self.scene.delete_geometry(handle)
        logger.debug(f"Released {handle}")


class TerrainSurface:
    def __init__(self, backend: RenderBackend):
        self.backend = backend
        self.state = SurfaceState.empty
        self._mesh: Optional[Mesh] = None
        self._handle = None

    @property
    def mesh(self) -> Optional[Mesh]:
        return self._mesh

    @property
    def handle(self):
        return self._handle

    def get_handle(self):
        """Current renderable handle, or None unless BUILT."""
        return self._handle if self.state is SurfaceState.built else None

    def build(self, mesh: Mesh):
        """Bind *mesh*, replacing any previously built one.

        The mesh is validated before anything is released, so a bad mesh
        leaves the current buffers untouched.  A backend failure in
        ``create`` is the one exception: the old buffers are already gone
        and the surface drops to EMPTY.
        """
        if self.state is SurfaceState.destroyed:
            raise SurfaceDestroyedError("Cannot build a destroyed surface")
        validate_mesh(mesh)

        rebuilt = self.state is SurfaceState.built
        self._release()
        try:
            handle = self.backend.create(mesh)
        except Exception:
            self.state = SurfaceState.empty
            logger.error("Renderer failed to bind terrain buffers")
            raise

        self._mesh = mesh
        self._handle = handle
        self.state = SurfaceState.built
        logger.info(f"Surface {'rebuilt' if rebuilt else 'built'}: "
                    f"{mesh.vertex_count} verts, {mesh.triangle_count} faces")
        return handle

    def destroy(self) -> None:
        """Release buffers and handle.  No-op unless BUILT."""
        if self.state is not SurfaceState.built:
            return
        self._release()
        self.state = SurfaceState.destroyed
        logger.info("Surface destroyed")

    def _release(self) -> None:
        handle, self._handle, self._mesh = self._handle, None, None
        if handle is not None:
            self.backend.release(handle)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.destroy()
        return False


class RenderLoop:
    """Single dedicated thread that owns every surface mutation and read.

    Meshes are built anywhere; only the destroy-old/build-new swap is
    submitted here, so frames and swaps never interleave.
    """

    def __init__(self, name: str = "render"):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._thread_ident: Optional[int] = None
        self._executor.submit(self._record_thread).result()

    def _record_thread(self) -> None:
        self._thread_ident = threading.get_ident()

    def on_render_thread(self) -> bool:
        return threading.get_ident() == self._thread_ident

    def submit(self, fn, *args, **kwargs) -> Future:
        """Run *fn* on the render thread.

        Calls made from the render thread itself run inline, so a task can
        wait on a hand-off without deadlocking the single worker.
        """
        if not self.on_render_thread():
            return self._executor.submit(fn, *args, **kwargs)
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def handoff(self, surface: TerrainSurface, mesh: Mesh) -> Future:
        """Swap *surface* to *mesh* on the render thread."""
        return self.submit(surface.build, mesh)

    def release(self, surface: TerrainSurface) -> Future:
        return self.submit(surface.destroy)

    def snapshot(self, surface: TerrainSurface) -> Future:
        """Read (handle, mesh) as a frame would see them."""
        def _read() -> Tuple[object, Optional[Mesh]]:
            return surface.get_handle(), surface.mesh
        return self.submit(_read)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
        return False
