"""Pytest configuration and shared fixtures for sparse_dnn tests."""

import pytest
import numpy as np

from sparse_dnn.config.packing_config import PackingConfig
from sparse_dnn.config.yaml_loader import reload_defaults
from sparse_dnn.core.slab_csr import build_slab_csr
from sparse_dnn.core.triples import parse_triples


# Fixtures for coordinate text and built layers


@pytest.fixture
def example_text():
    """Two diagonal entries of a 2x2 layer."""
    return "1\t1\t2.0\n2\t2\t3.0\n"


@pytest.fixture
def example_triples(example_text):
    """Parsed example_text."""
    return parse_triples(example_text)


@pytest.fixture
def single_slab_matrix(example_triples):
    """example_text built with one slab of width 2."""
    return build_slab_csr(example_triples, rows=2, cols=2, nnz=2, col_block_width=2, slab_count=1)


@pytest.fixture
def two_slab_matrix(example_triples):
    """example_text built with two slabs of width 1."""
    return build_slab_csr(example_triples, rows=2, cols=2, nnz=2, col_block_width=1, slab_count=2)


@pytest.fixture
def two_slab_config():
    """Arena geometry matching two_slab_matrix, three layers."""
    return PackingConfig(
        rows=2,
        cols=2,
        max_nnz_per_layer=4,
        num_layers=3,
        col_block_width=1,
        slab_count=2,
    )


# Fixtures for dataset files


WEIGHT_LAYERS = {
    1: "1\t1\t1.0\n2\t3\t2.0\n4\t4\t3.0\n",
    2: "1\t2\t0.5\n3\t4\t-1.0\n",
    3: "4\t1\t2.5\n",
}


@pytest.fixture
def weight_layers():
    """Coordinate text of three 4x4 layers, keyed by 1-based layer number."""
    return dict(WEIGHT_LAYERS)


@pytest.fixture
def weight_dir(tmp_path, weight_layers):
    """Directory holding n4-l1.tsv .. n4-l3.tsv."""
    for layer, text in weight_layers.items():
        (tmp_path / f"n4-l{layer}.tsv").write_text(text)
    return tmp_path


@pytest.fixture
def weight_config():
    """Packing geometry of the weight_dir network."""
    return PackingConfig(
        rows=4,
        cols=4,
        max_nnz_per_layer=3,
        num_layers=3,
        col_block_width=2,
        slab_count=2,
    )


@pytest.fixture
def restore_defaults(monkeypatch):
    """Reload the packaged defaults.yaml after a test overrides it."""
    yield monkeypatch
    monkeypatch.delenv("SPARSE_DNN_DEFAULTS_PATH", raising=False)
    reload_defaults()


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(1234)
