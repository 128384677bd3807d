import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest


def make_uv_sphere(n_lat=20, n_lon=25, radius=1.0):
    """Latitude/longitude sphere without pole vertices: n_lat * n_lon vertices, outward winding."""
    theta = np.pi * np.arange(1, n_lat + 1) / (n_lat + 1)
    phi = 2 * np.pi * np.arange(n_lon) / n_lon
    t, p = np.meshgrid(theta, phi, indexing="ij")
    vertices = radius * np.column_stack([
        (np.sin(t) * np.cos(p)).ravel(),
        (np.sin(t) * np.sin(p)).ravel(),
        np.cos(t).ravel(),
    ])

    faces = []
    for i in range(n_lat - 1):
        for j in range(n_lon):
            a = i * n_lon + j
            b = i * n_lon + (j + 1) % n_lon
            c = (i + 1) * n_lon + j
            d = (i + 1) * n_lon + (j + 1) % n_lon
            faces.append((a, c, b))
            faces.append((b, c, d))
    return vertices, np.array(faces, dtype=np.int64)


def make_ellipsoid_cloud(n=500, axes=(3.0, 2.0, 1.0)):
    """Fibonacci-spiral samples on an ellipsoid with distinct axes."""
    i = np.arange(n) + 0.5
    z = 1 - 2 * i / n
    r = np.sqrt(1 - z ** 2)
    golden = np.pi * (3 - np.sqrt(5))
    phi = golden * i
    unit = np.column_stack([r * np.cos(phi), r * np.sin(phi), z])
    return unit * np.asarray(axes)


@pytest.fixture
def uv_sphere():
    return make_uv_sphere()


@pytest.fixture
def ellipsoid():
    return make_ellipsoid_cloud()


@pytest.fixture
def rng():
    return np.random.default_rng(12345)
