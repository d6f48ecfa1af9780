"""Tests for the ghost-padded grid index mapping."""

import numpy as np
import pytest

from euler2d.grid.topology import GridIndex


class TestGridIndex:
    """Raster sizes and inner-ordinal mappings."""

    @pytest.fixture
    def index(self):
        # cell_stride = 3 + 4 = 7, point_stride = 8
        return GridIndex(nx=3, ny=2, nghost=2)

    def test_raster_sizes(self, index):
        assert index.cell_stride == 7
        assert index.cell_rows == 6
        assert index.point_stride == 8
        assert index.point_rows == 7
        assert index.n_cells == 42
        assert index.n_points == 56
        assert index.n_inner == 6
        assert index.n_inner_points == 12

    def test_first_inner(self, index):
        assert index.first_inner == 2 * 7 + 2
        assert index.first_inner_point == 2 * 8 + 2

    def test_inner_index_values(self, index):
        assert index.inner_index(0) == 16
        assert index.inner_index(2) == 18
        # Second interior row starts one full stride later
        assert index.inner_index(3) == 23
        assert index.inner_index(5) == 25

    def test_inner_point_index_values(self, index):
        assert index.inner_point_index(0) == 18
        assert index.inner_point_index(3) == 21
        assert index.inner_point_index(4) == 26
        assert index.inner_point_index(11) == 18 + 3 + 2 * 8

    def test_vectorized_mapping(self, index):
        np.testing.assert_array_equal(index.inner_cells(), [16, 17, 18, 23, 24, 25])
        assert index.inner_points().shape == (12,)

    def test_inner_cells_are_not_ghosts(self, index):
        assert not np.any(index.is_ghost(index.inner_cells()))
        ghosts = index.is_ghost(np.arange(index.n_cells))
        assert np.count_nonzero(ghosts) == index.n_cells - index.n_inner

    def test_cell_coords_roundtrip(self, index):
        k = np.arange(index.n_cells)
        col, row = index.cell_coords(k)
        np.testing.assert_array_equal(index.cell_index(col, row), k)

    def test_mapping_is_injective(self):
        index = GridIndex(nx=17, ny=5, nghost=3)
        cells = index.inner_cells()
        points = index.inner_points()
        assert np.unique(cells).size == index.n_inner
        assert np.unique(points).size == index.n_inner_points
        assert cells.max() < index.n_cells
        assert points.max() < index.n_points

    @pytest.mark.parametrize("ordinal", [-1, 6, 100])
    def test_out_of_range_ordinal(self, index, ordinal):
        with pytest.raises(IndexError):
            index.inner_index(ordinal)

    def test_point_ordinal_out_of_range(self, index):
        with pytest.raises(IndexError):
            index.inner_point_index(12)

    def test_non_integer_ordinal(self, index):
        with pytest.raises(TypeError):
            index.inner_index(1.5)

    def test_invalid_sizes(self):
        with pytest.raises(ValueError):
            GridIndex(nx=0, ny=4)
        with pytest.raises(ValueError):
            GridIndex(nx=4, ny=4, nghost=-1)
