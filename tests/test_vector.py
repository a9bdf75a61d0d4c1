"""Unit tests for vec3 algebra and random sampling helpers.

Tests cover:
- Length, dot and cross products
- Reflection and refraction
- near_zero threshold behavior
- Schlick reflectance boundary values
- Rejection samplers stay inside their domains
"""

import math

import taichi as ti


class TestVectorAlgebra:
    """Tests for basic vector operations."""

    def test_length_and_length_squared(self):
        """Test length of a 3-4-0 vector."""
        from pathtracer.core.vector import length, length_squared, vec3

        result_len = ti.field(dtype=ti.f32, shape=())
        result_len_sq = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            result_len[None] = length(v)
            result_len_sq[None] = length_squared(v)

        test_kernel()
        assert abs(result_len[None] - 5.0) < 1e-5
        assert abs(result_len_sq[None] - 25.0) < 1e-5

    def test_unit_vector(self):
        """Test that unit_vector scales to length 1 keeping direction."""
        from pathtracer.core.vector import unit_vector, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = unit_vector(vec3(0.0, 3.0, 4.0))

        test_kernel()
        v = result[None]
        assert abs(v[0]) < 1e-6
        assert abs(v[1] - 0.6) < 1e-6
        assert abs(v[2] - 0.8) < 1e-6

    def test_dot_and_cross(self):
        """Test dot and cross products of the x and y axes."""
        from pathtracer.core.vector import cross, dot, vec3

        result_dot = ti.field(dtype=ti.f32, shape=())
        result_cross = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            x = vec3(1.0, 0.0, 0.0)
            y = vec3(0.0, 1.0, 0.0)
            result_dot[None] = dot(x, y)
            result_cross[None] = cross(x, y)

        test_kernel()
        assert abs(result_dot[None]) < 1e-6
        c = result_cross[None]
        assert abs(c[0]) < 1e-6
        assert abs(c[1]) < 1e-6
        assert abs(c[2] - 1.0) < 1e-6


class TestReflectRefract:
    """Tests for reflect and refract."""

    def test_reflect_mirrors_about_normal(self):
        """Test reflection flips the normal component only."""
        from pathtracer.core.vector import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_normal_incidence_passes_straight(self):
        """Test a ray hitting head-on is not bent."""
        from pathtracer.core.vector import refract, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-5
        assert abs(r[1] + 1.0) < 1e-5
        assert abs(r[2]) < 1e-5

    def test_refract_obeys_snell(self):
        """Test refraction at 45 degrees into glass follows Snell's law."""
        from pathtracer.core.vector import refract, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())
        eta = 1.0 / 1.5

        @ti.kernel
        def test_kernel():
            inv_sqrt2 = 1.0 / ti.sqrt(2.0)
            incident = vec3(inv_sqrt2, -inv_sqrt2, 0.0)
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), eta)

        test_kernel()
        r = result[None]
        sin_out = eta * math.sin(math.radians(45.0))
        assert abs(r[0] - sin_out) < 1e-5
        assert abs(r[1] + math.sqrt(1.0 - sin_out * sin_out)) < 1e-5
        # Unit length in, unit length out
        assert abs(math.sqrt(r[0] ** 2 + r[1] ** 2 + r[2] ** 2) - 1.0) < 1e-5


class TestNearZero:
    """Tests for the near_zero threshold."""

    def test_near_zero_threshold(self):
        """Test near_zero is true only when every component is below 1e-8."""
        from pathtracer.core.vector import near_zero, vec3

        results = ti.field(dtype=ti.i32, shape=5)

        @ti.kernel
        def test_kernel():
            results[0] = near_zero(vec3(0.0, 0.0, 0.0))
            results[1] = near_zero(vec3(1e-9, -1e-9, 5e-9))
            results[2] = near_zero(vec3(1e-7, 0.0, 0.0))
            results[3] = near_zero(vec3(0.0, 0.0, -1e-7))
            results[4] = near_zero(vec3(1.0, 1.0, 1.0))

        test_kernel()
        assert results[0] == 1
        assert results[1] == 1
        assert results[2] == 0
        assert results[3] == 0
        assert results[4] == 0


class TestSchlick:
    """Tests for the Schlick reflectance approximation."""

    def test_normal_incidence_equals_r0(self):
        """Test cos=1 gives ((1 - n) / (1 + n))^2."""
        from pathtracer.core.vector import schlick_reflectance

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = schlick_reflectance(1.0, 1.5)

        test_kernel()
        expected = ((1.0 - 1.5) / (1.0 + 1.5)) ** 2
        assert abs(result[None] - expected) < 1e-6

    def test_grazing_incidence_is_total(self):
        """Test cos=0 gives full reflectance."""
        from pathtracer.core.vector import schlick_reflectance

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        assert abs(result[None] - 1.0) < 1e-6


class TestRandomSampling:
    """Tests for Monte Carlo sampling helpers."""

    def test_random_in_unit_sphere_inside_ball(self):
        """Test every sample lies strictly inside the unit ball."""
        from pathtracer.core.vector import length_squared, random_in_unit_sphere

        n = 1000
        results = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                results[i] = length_squared(random_in_unit_sphere())

        test_kernel()
        values = results.to_numpy()
        assert (values < 1.0).all()

    def test_random_unit_vector_has_unit_length(self):
        """Test random unit vectors are normalized."""
        from pathtracer.core.vector import length, random_unit_vector

        n = 1000
        results = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                results[i] = length(random_unit_vector())

        test_kernel()
        values = results.to_numpy()
        assert (abs(values - 1.0) < 1e-4).all()

    def test_random_in_unit_disk_is_planar(self):
        """Test disk samples have z=0 and lie inside the unit circle."""
        from pathtracer.core.vector import random_in_unit_disk

        n = 1000
        results = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                results[i] = random_in_unit_disk()

        test_kernel()
        points = results.to_numpy()
        assert (points[:, 2] == 0.0).all()
        assert ((points[:, 0] ** 2 + points[:, 1] ** 2) < 1.0).all()

    def test_random_vec3_range(self):
        """Test random_vec3 components stay within [min, max)."""
        from pathtracer.core.vector import random_vec3

        n = 1000
        results = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                results[i] = random_vec3(0.5, 1.0)

        test_kernel()
        values = results.to_numpy()
        assert (values >= 0.5).all()
        assert (values <= 1.0).all()
