"""SlopeView: 3D terrain meshes from elevation surveys."""

from slopeview.builder import TerrainBuilder
from slopeview.config import TerrainConfig
from slopeview.mesh import build_mesh
from slopeview.models import Mesh, NormalizationRange, SurveyArea, Vertex
from slopeview.normalize import compute_range
from slopeview.resample import resample
from slopeview.surface import RenderLoop, SceneBackend, TerrainSurface
