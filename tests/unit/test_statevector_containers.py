"""
Unit tests for the dense and sparse amplitude containers.
"""

import numpy as np
import pytest

from ampsim.config import EngineConfig
from ampsim.sim import DenseStateVector, SparseStateVector, create_state_vector


@pytest.fixture(params=[DenseStateVector, SparseStateVector], ids=["dense", "sparse"])
def container(request):
    return request.param(8)


class TestSingleElementAccess:
    
    def test_starts_empty(self, container):
        for i in range(8):
            assert container.read(i) == 0
    
    def test_write_read(self, container):
        container.write(5, 0.6 - 0.8j)
        
        assert container.read(5) == pytest.approx(0.6 - 0.8j)
        assert container.read(4) == 0
    
    def test_write2(self, container):
        container.write2(1, 0.5j, 6, -0.5)
        
        assert container.read(1) == pytest.approx(0.5j)
        assert container.read(6) == pytest.approx(-0.5)
    
    def test_write2_zero_clears_previous_value(self, container):
        """A zero written over a nonzero value must take effect."""
        container.write(2, 1.0)
        container.write2(2, 0, 3, 0)
        
        assert container.read(2) == 0
        assert container.read(3) == 0
    
    def test_clear(self, container):
        container.write(0, 1.0)
        container.write(7, 1j)
        container.clear()
        
        out = np.ones(8, dtype=np.complex128)
        container.copy_out(out)
        np.testing.assert_array_equal(out, np.zeros(8))


class TestBulkTransfer:
    
    def test_copy_in_out(self, container):
        data = np.arange(8) * (1 + 1j)
        container.copy_in(data)
        
        out = np.empty(8, dtype=np.complex128)
        container.copy_out(out)
        np.testing.assert_array_equal(out, data)
    
    def test_copy_in_shape_mismatch(self, container):
        with pytest.raises(ValueError, match="does not match"):
            container.copy_in(np.zeros(4))
    
    @pytest.mark.parametrize("source_cls", [DenseStateVector, SparseStateVector])
    def test_copy_between_variants(self, container, source_cls):
        source = source_cls(8)
        source.write(3, 0.25j)
        source.write(6, -1.0)
        container.copy(source)
        
        assert container.read(3) == pytest.approx(0.25j)
        assert container.read(6) == pytest.approx(-1.0)
        assert container.read(0) == 0
    
    def test_copy_capacity_mismatch(self, container):
        with pytest.raises(ValueError, match="capacity"):
            container.copy(DenseStateVector(4))
    
    def test_get_probs(self, container):
        container.write(1, 0.6)
        container.write(4, 0.8j)
        
        probs = np.empty(8)
        container.get_probs(probs)
        expected = np.zeros(8)
        expected[1] = 0.36
        expected[4] = 0.64
        np.testing.assert_allclose(probs, expected, atol=1e-15)


class TestVariants:
    
    def test_is_sparse(self):
        assert DenseStateVector(4).is_sparse() is False
        assert SparseStateVector(4).is_sparse() is True
    
    def test_sparse_stores_only_nonzero(self):
        sv = SparseStateVector(16)
        sv.write(3, 1.0)
        sv.write(9, 0.0)
        sv.write2(10, 0.0, 11, 0.5)
        
        assert sorted(sv.nonzero_indices()) == [3, 11]
        assert len(sv) == 2
    
    def test_sparse_discard(self):
        sv = SparseStateVector(4)
        sv.write(2, 1.0)
        sv.discard(2)
        
        assert len(sv) == 0
    
    def test_single_precision_storage(self):
        sv = SparseStateVector(4, dtype=np.complex64)
        sv.write(1, 1 / 3)
        
        assert sv.real_dtype == np.float32
        assert sv.read(1) == pytest.approx(1 / 3, rel=1e-6)
    
    def test_invalid_capacity(self):
        with pytest.raises(ValueError, match="capacity must be positive"):
            DenseStateVector(0)


class TestFactory:
    
    def test_dense_from_config(self):
        sv = create_state_vector(16, EngineConfig())
        
        assert isinstance(sv, DenseStateVector)
        assert sv.amplitudes.dtype == np.complex128
    
    def test_sparse_from_config(self):
        sv = create_state_vector(16, EngineConfig(storage="sparse", precision="single"))
        
        assert isinstance(sv, SparseStateVector)
        assert sv.dtype == np.complex64
    
    def test_dense_rejects_huge_capacity(self):
        with pytest.raises(ValueError, match="storage='sparse'"):
            create_state_vector(1 << 70, EngineConfig())
    
    def test_sparse_accepts_huge_capacity(self):
        sv = create_state_vector(1 << 70, EngineConfig(storage="sparse"))
        sv.write((1 << 69) + 5, 1.0)
        
        assert sv.read((1 << 69) + 5) == 1.0
