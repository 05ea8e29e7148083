"""Tests for terrain mesh generation."""
import numpy as np
import pytest

from slopeview.errors import EmptyGridError, InvalidGridError, MeshTooLargeError
from slopeview.mesh import build_mesh, grid_indices, to_trimesh, validate_mesh
from slopeview.models import NormalizationRange
from slopeview.normalize import compute_range


def _mesh(grid, h=10.0, v=150.0):
    return build_mesh(grid, compute_range(grid), h, v)


class TestBuildMesh:
    def test_three_by_three_counts(self):
        mesh = _mesh([[0, 1, 2], [3, 4, 5], [6, 7, 8]])
        assert mesh.vertex_count == 9
        assert mesh.triangle_count == 8
        assert mesh.index_count == 24

    @pytest.mark.parametrize("rows,cols", [(2, 2), (3, 7), (10, 4), (1, 5)])
    def test_counts_for_rectangles(self, rows, cols):
        grid = np.arange(rows * cols, dtype=np.float64).reshape(rows, cols)
        mesh = _mesh(grid)
        assert mesh.vertex_count == rows * cols
        assert mesh.index_count == 6 * (rows - 1) * (cols - 1)
        if mesh.index_count:
            assert mesh.indices.max() < mesh.vertex_count

    def test_first_cell_winding(self):
        mesh = _mesh([[0, 1, 2], [3, 4, 5], [6, 7, 8]])
        # tl=0, tr=1, bl=3, br=4
        assert mesh.indices[0].tolist() == [0, 3, 1]
        assert mesh.indices[1].tolist() == [1, 3, 4]
        # next cell to the east
        assert mesh.indices[2].tolist() == [1, 4, 2]
        assert mesh.indices[3].tolist() == [2, 4, 5]

    def test_all_faces_share_orientation(self, hill_grid):
        tm = to_trimesh(_mesh(hill_grid))
        normals_y = tm.face_normals[:, 1]
        assert (normals_y < 0).all() or (normals_y > 0).all()

    def test_positions(self):
        mesh = _mesh([[0, 1, 2], [3, 4, 5], [6, 7, 8]], h=10.0, v=150.0)
        x, y, z = mesh.vertex(4).position
        assert (x, z) == (10.0, -10.0)
        assert y == pytest.approx(0.5 * 150.0)
        assert mesh.vertex(8).position == pytest.approx((20.0, 150.0, -20.0))
        assert mesh.vertex(0).position == (0.0, 0.0, 0.0)

    def test_uvs(self):
        mesh = _mesh([[0, 10, 20, 30], [0, 10, 20, 30]])
        u = mesh.uvs[:4, 0]
        assert u.tolist() == pytest.approx([0.0, 0.25, 0.5, 0.75])
        assert mesh.uvs[:4, 1].tolist() == pytest.approx([0.0, 1 / 3, 2 / 3, 1.0])

    def test_normalized_height_in_unit_interval(self, hill_grid):
        mesh = _mesh(hill_grid, v=400.0)
        assert mesh.uvs[:, 1].min() >= 0.0 and mesh.uvs[:, 1].max() <= 1.0
        assert mesh.positions[:, 1].min() >= 0.0
        assert mesh.positions[:, 1].max() <= 400.0

    def test_samples_outside_range_are_clipped(self):
        mesh = build_mesh([[-5.0, 50.0]], NormalizationRange(0.0, 10.0), 1.0, 1.0)
        assert mesh.uvs[:, 1].tolist() == [0.0, 1.0]

    def test_flat_grid_is_level(self):
        with pytest.warns(UserWarning):
            rng = compute_range([[5, 5], [5, 5]])
        mesh = build_mesh([[5, 5], [5, 5]], rng, 10.0, 150.0)
        assert (mesh.positions[:, 1] == 0.0).all()

    def test_reproducible(self, hill_grid):
        rng = compute_range(hill_grid)
        a = build_mesh(hill_grid, rng, 10.0, 250.0)
        b = build_mesh(hill_grid, rng, 10.0, 250.0)
        assert np.array_equal(a.positions, b.positions)
        assert np.array_equal(a.uvs, b.uvs)
        assert np.array_equal(a.indices, b.indices)

    def test_largest_indexable_grid(self):
        grid = np.random.default_rng(1).uniform(0, 100, (256, 256))
        mesh = _mesh(grid)
        assert mesh.vertex_count == 65536
        assert mesh.indices.dtype == np.uint16
        assert int(mesh.indices.max()) == 65535

    def test_too_large(self):
        grid = np.zeros((257, 256))
        with pytest.raises(MeshTooLargeError) as exc_info:
            build_mesh(grid, NormalizationRange(0.0, 1.0), 10.0, 150.0)
        assert exc_info.value.vertex_count == 257 * 256
        assert exc_info.value.limit == 65536

    def test_empty(self):
        with pytest.raises(InvalidGridError):
            build_mesh([], NormalizationRange(0.0, 1.0), 10.0, 150.0)
        with pytest.raises(EmptyGridError):
            build_mesh([[]], NormalizationRange(0.0, 1.0), 10.0, 150.0)

    def test_ragged(self):
        with pytest.raises(InvalidGridError):
            build_mesh([[1, 2, 3], [4, 5]], NormalizationRange(0.0, 9.0), 10.0, 150.0)

    def test_object_array(self):
        grid = np.array([[1, 2, 3], [4, 5]], dtype=object)
        with pytest.raises(InvalidGridError):
            build_mesh(grid, NormalizationRange(0.0, 9.0), 10.0, 150.0)

    def test_non_numeric_array(self):
        with pytest.raises(InvalidGridError):
            build_mesh(np.array([["a", "b"], ["c", "d"]]),
                       NormalizationRange(0.0, 9.0), 10.0, 150.0)

    def test_non_positive_scale(self):
        with pytest.raises(ValueError):
            build_mesh([[1, 2], [3, 4]], NormalizationRange(1.0, 4.0), 0.0, 150.0)


class TestMeshBuffers:
    def test_interleaved_layout(self):
        mesh = _mesh([[0, 1, 2], [3, 4, 5], [6, 7, 8]])
        buf = mesh.interleaved()
        assert buf.shape == (9, 5)
        assert buf.dtype == np.float32
        assert np.array_equal(buf[:, :3], mesh.positions)
        assert np.array_equal(buf[:, 3:], mesh.uvs)

    def test_index_buffer(self):
        mesh = _mesh([[0, 1, 2], [3, 4, 5], [6, 7, 8]])
        ib = mesh.index_buffer()
        assert ib.dtype == np.uint16
        assert ib[:6].tolist() == [0, 3, 1, 1, 3, 4]

    def test_bounding_box(self):
        mesh = _mesh([[0, 1, 2], [3, 4, 5], [6, 7, 8]], h=10.0, v=150.0)
        bbox = mesh.bounding_box()
        assert bbox.min == (0.0, 0.0, -20.0)
        assert bbox.max == (20.0, 150.0, 0.0)
        assert bbox.extents == (20.0, 150.0, 20.0)

    def test_vertices_iterates_in_order(self):
        mesh = _mesh([[0, 1], [2, 3]])
        verts = list(mesh.vertices)
        assert len(verts) == 4
        assert verts[3].position == pytest.approx((10.0, 150.0, -10.0))
        assert verts[1].uv == pytest.approx((0.5, 1 / 3))


class TestValidateMesh:
    def test_accepts_built_mesh(self, hill_grid):
        validate_mesh(_mesh(hill_grid))

    def test_rejects_out_of_range_index(self, hill_grid):
        mesh = _mesh(hill_grid)
        mesh.indices = mesh.indices.copy()
        mesh.indices[0, 0] = mesh.vertex_count
        with pytest.raises(InvalidGridError):
            validate_mesh(mesh)

    def test_rejects_mismatched_buffers(self, hill_grid):
        mesh = _mesh(hill_grid)
        mesh.uvs = mesh.uvs[:-1]
        with pytest.raises(InvalidGridError):
            validate_mesh(mesh)


class TestGridIndices:
    def test_single_row_has_no_faces(self):
        assert grid_indices(1, 8).shape == (0, 3)

    def test_cell_order_is_row_major(self):
        faces = grid_indices(3, 3)
        # second row of cells starts at vertex 3
        assert faces[4].tolist() == [3, 6, 4]


class TestToTrimesh:
    def test_keeps_vertex_order(self, hill_grid):
        mesh = _mesh(hill_grid)
        tm = to_trimesh(mesh)
        assert len(tm.vertices) == mesh.vertex_count
        assert np.allclose(tm.vertices, mesh.positions)
        assert np.array_equal(tm.faces, mesh.indices.astype(np.int64))
        assert np.allclose(tm.visual.uv, mesh.uvs)
