import numpy as np
import pytest

from meshicp import DegenerateInputError, compute_normals, compute_vertex_normals, get_vertex_normals


def test_sphere_mesh_normals_point_outward(uv_sphere):
    vertices, faces = uv_sphere
    normals = compute_vertex_normals(vertices, faces)
    np.testing.assert_allclose(np.linalg.norm(normals, axis=1), 1.0)
    assert np.all(np.einsum('ij,ij->i', normals, vertices) > 0.5)


def test_reversed_winding_flips_normals(uv_sphere):
    vertices, faces = uv_sphere
    normals = compute_vertex_normals(vertices, faces)
    flipped = compute_vertex_normals(vertices, faces[:, ::-1])
    np.testing.assert_allclose(flipped, -normals)


def test_isolated_and_degenerate_vertices_get_zero():
    vertices = np.array([
        [0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0],
        [5.0, 5.0, 5.0],                                    # isolated
        [2.0, 0.0, 0.0], [3.0, 0.0, 0.0], [4.0, 0.0, 0.0],  # zero-area face
    ])
    faces = np.array([[0, 1, 2], [4, 5, 6]])
    normals = compute_vertex_normals(vertices, faces)
    np.testing.assert_allclose(normals[0], [0.0, 0.0, 1.0])
    np.testing.assert_array_equal(normals[3:], np.zeros((4, 3)))


def test_out_of_range_faces_rejected():
    with pytest.raises(DegenerateInputError):
        compute_vertex_normals(np.eye(3), np.array([[0, 1, 3]]))


def test_point_cloud_normals_on_sphere(uv_sphere):
    vertices, _ = uv_sphere
    normals = compute_normals(vertices, k=12)
    np.testing.assert_allclose(np.linalg.norm(normals, axis=1), 1.0)
    assert np.mean(np.einsum('ij,ij->i', normals, vertices) > 0.9) > 0.95


def test_colinear_points_have_no_normal():
    points = np.column_stack([np.linspace(0, 1, 20), np.zeros(20), np.zeros(20)])
    np.testing.assert_array_equal(compute_normals(points, k=5), np.zeros((20, 3)))


def test_tiny_cloud_has_no_normal():
    np.testing.assert_array_equal(compute_normals(np.eye(3)[:2]), np.zeros((2, 3)))


def test_dispatch(uv_sphere):
    vertices, faces = uv_sphere
    np.testing.assert_allclose(get_vertex_normals(vertices, faces),
                               compute_vertex_normals(vertices, faces))
    assert get_vertex_normals(vertices).shape == vertices.shape
