"""
Unit tests for the span partitioner.
"""

import threading

import pytest

from ampsim.sim.parallel import ParallelFor


class TestSpans:
    
    def test_spans_cover_range(self):
        par = ParallelFor(n_workers=2, chunk_size=4)
        
        assert par.spans(10) == [(0, 4), (4, 8), (8, 10)]
        assert par.spans(0) == []
    
    def test_chunk_override(self):
        par = ParallelFor(chunk_size=4)
        
        assert par.spans(6, chunk_size=3) == [(0, 3), (3, 6)]
    
    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            ParallelFor(n_workers=0)
        with pytest.raises(ValueError):
            ParallelFor(chunk_size=0)


class TestRun:
    
    def test_results_in_span_order(self):
        with ParallelFor(n_workers=4, chunk_size=3) as par:
            results = par.run(10, lambda begin, end: list(range(begin, end)))
        
        assert [i for span in results for i in span] == list(range(10))
    
    def test_par_sum(self):
        with ParallelFor(n_workers=3, chunk_size=7) as par:
            total = par.par_sum(100, lambda begin, end: float(sum(range(begin, end))))
        
        assert total == pytest.approx(sum(range(100)))
    
    def test_uses_worker_threads(self):
        seen = set()
        
        def record(begin, end):
            seen.add(threading.current_thread().name)
        
        with ParallelFor(n_workers=2, chunk_size=1) as par:
            par.run(8, record)
        
        assert all(name.startswith("ampsim") for name in seen)
    
    def test_serial_runs_inline(self):
        seen = set()
        par = ParallelFor(n_workers=1, chunk_size=1)
        par.run(4, lambda begin, end: seen.add(threading.current_thread().name))
        
        assert seen == {threading.current_thread().name}
    
    def test_close_is_idempotent(self):
        par = ParallelFor(n_workers=2, chunk_size=1)
        par.run(4, lambda begin, end: None)
        par.close()
        par.close()
