"""Tests for the reference catalogue loaders."""

import json

import pytest

from aiprophet import (
    get_cloud_instance,
    get_gpu,
    list_cloud_instances,
    list_gpu_names,
    load_cloud_instances,
    load_gpus,
)
from aiprophet.loader import DATA_DIR_ENV


@pytest.fixture
def clear_caches():
    load_gpus.cache_clear()
    load_cloud_instances.cache_clear()
    yield
    load_gpus.cache_clear()
    load_cloud_instances.cache_clear()


class TestGpuCatalogue:
    """Tests for the GPU catalogue."""

    def test_load_gpus(self):
        names = list_gpu_names()
        assert len(names) > 0
        assert "A100-80G" in names
        assert "H100-80G-SXM" in names

    def test_get_gpu(self):
        gpu = get_gpu("A100-80G")
        assert gpu is not None
        assert gpu.memory_gb == 80
        assert gpu.memory_bandwidth_gbs > 0

    def test_get_gpu_case_insensitive(self):
        gpu1 = get_gpu("A100-80G")
        gpu2 = get_gpu("a100-80g")
        assert gpu1 is not None
        assert gpu1 == gpu2

    def test_unknown_gpu(self):
        assert get_gpu("not-a-gpu") is None

    def test_catalogue_is_immutable(self):
        gpus = load_gpus()
        assert isinstance(gpus, tuple)
        with pytest.raises(Exception):
            gpus[0].memory_gb = 1

    def test_cloud_instances_reference_known_gpus(self):
        names = {name.lower() for name in list_gpu_names()}
        for instance in load_cloud_instances():
            assert instance.gpu_name.lower() in names


class TestCloudCatalogue:
    """Tests for the cloud instance catalogue."""

    def test_get_cloud_instance(self):
        instance = get_cloud_instance("p3.2xlarge")
        assert instance is not None
        assert instance.provider == "AWS"
        assert instance.hourly_rate == 3.06

    def test_filter_by_provider(self):
        gcp = list_cloud_instances("gcp")
        assert len(gcp) > 0
        assert all(i.provider == "GCP" for i in gcp)

    def test_list_all(self):
        assert len(list_cloud_instances()) == len(load_cloud_instances())


class TestDataDirOverride:
    """Tests for the data directory environment override."""

    def test_env_override(self, tmp_path, monkeypatch, clear_caches):
        (tmp_path / "gpus.json").write_text(
            json.dumps(
                {"gpus": [{"name": "Custom", "memory_gb": 12, "fp32_tflops": 1, "memory_bandwidth_gbs": 100}]}
            ),
            encoding="utf-8",
        )
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))
        assert list_gpu_names() == ["Custom"]

    def test_missing_env_dir_falls_back(self, tmp_path, monkeypatch, clear_caches):
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path / "missing"))
        assert "A100-80G" in list_gpu_names()

    def test_invalid_catalogue_rejected(self, tmp_path, monkeypatch, clear_caches):
        (tmp_path / "gpus.json").write_text(
            json.dumps({"gpus": [{"name": "Broken", "memory_gb": -1, "fp32_tflops": 1, "memory_bandwidth_gbs": 1}]}),
            encoding="utf-8",
        )
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))
        with pytest.raises(ValueError):
            load_gpus()
