"""Tests for cost estimates and hardware recommendations."""

import pytest

from aiprophet import (
    CloudInstance,
    GpuSpec,
    estimate_cloud_cost,
    estimate_instance_cost,
    recommend_cloud_instances,
    recommend_gpu,
    recommend_gpus,
)

CATALOGUE = (
    GpuSpec(name="Small", memory_gb=8, fp32_tflops=10, memory_bandwidth_gbs=300),
    GpuSpec(name="Medium", memory_gb=24, fp32_tflops=30, memory_bandwidth_gbs=900),
    GpuSpec(name="Large", memory_gb=80, fp32_tflops=60, memory_bandwidth_gbs=2000),
    GpuSpec(name="Mid-Plus", memory_gb=32, fp32_tflops=15, memory_bandwidth_gbs=900),
)


class TestEstimateCloudCost:
    """Tests for estimate_cloud_cost."""

    def test_total_cost(self):
        result = estimate_cloud_cost(hourly_rate=3.06, duration_hours=2)
        assert result.total_cost == pytest.approx(6.12)
        assert result.hourly_rate == 3.06
        assert result.duration_hours == 2

    def test_zero_duration(self):
        assert estimate_cloud_cost(3.06, 0).total_cost == 0

    @pytest.mark.parametrize("rate,hours", [(-1, 2), (3.06, -0.5)])
    def test_negative_inputs_rejected(self, rate, hours):
        with pytest.raises(ValueError, match="non-negative"):
            estimate_cloud_cost(rate, hours)


class TestEstimateInstanceCost:
    """Tests for estimate_instance_cost."""

    def test_known_instance(self):
        result = estimate_instance_cost("p3.2xlarge", 2)
        assert result.total_cost == pytest.approx(6.12)

    def test_case_insensitive(self):
        assert estimate_instance_cost("P3.2XLARGE", 1).hourly_rate == 3.06

    def test_unknown_instance(self):
        with pytest.raises(ValueError, match="Unknown cloud instance"):
            estimate_instance_cost("does-not-exist", 1)


class TestRecommendGpus:
    """Tests for recommend_gpus."""

    def test_tightest_fit_first(self):
        result = recommend_gpus(20, gpus=CATALOGUE)
        assert [gpu.name for gpu in result] == ["Medium", "Mid-Plus", "Large"]
        assert result[0].memory_headroom_gb == pytest.approx(4)

    def test_max_results(self):
        assert len(recommend_gpus(1, max_results=2, gpus=CATALOGUE)) == 2

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_max_results(self, limit):
        assert recommend_gpus(1, max_results=limit, gpus=CATALOGUE) == []

    def test_exact_fit_has_zero_headroom(self):
        result = recommend_gpus(24, gpus=CATALOGUE)
        assert result[0].name == "Medium"
        assert result[0].memory_headroom_gb == 0

    def test_nothing_fits(self):
        assert recommend_gpus(500, gpus=CATALOGUE) == []

    @pytest.mark.parametrize("required", [0, -3])
    def test_non_positive_requirement(self, required):
        assert recommend_gpus(required, gpus=CATALOGUE) == []

    @pytest.mark.parametrize("required,limit", [(0.5, 3), (13, 5), (40, 2), (79.9, 10)])
    def test_bundled_catalogue_properties(self, required, limit):
        result = recommend_gpus(required, limit)
        headrooms = [gpu.memory_headroom_gb for gpu in result]
        assert 0 < len(result) <= limit
        assert all(h >= 0 for h in headrooms)
        assert headrooms == sorted(headrooms)


class TestRecommendGpuTiers:
    """Tests for the tiered recommend_gpu."""

    def test_gtx_1060(self):
        assert recommend_gpu(7, 0.5e9) == "Minimum recommendation: NVIDIA GTX 1060 6GB"
        assert recommend_gpu(8, 1e9) == "Minimum recommendation: NVIDIA GTX 1060 6GB"

    def test_gtx_1080_ti(self):
        assert recommend_gpu(9, 1.5e9) == "Minimum recommendation: NVIDIA GTX 1080 Ti"
        assert recommend_gpu(11, 2e9) == "Minimum recommendation: NVIDIA GTX 1080 Ti"

    def test_rtx_2080_ti(self):
        assert recommend_gpu(12, 2.1e9) == "Minimum recommendation: NVIDIA RTX 2080 Ti"
        assert recommend_gpu(24, 5e9) == "Minimum recommendation: NVIDIA RTX 2080 Ti"

    def test_top_tier(self):
        assert recommend_gpu(25, 5e9) == "Minimum recommendation: NVIDIA A100 or higher"
        assert recommend_gpu(24, 5.1e9) == "Minimum recommendation: NVIDIA A100 or higher"

    def test_low_memory_high_flops_falls_through(self):
        """Both ceilings must hold for a tier to match."""
        assert recommend_gpu(2, 3e9) == "Minimum recommendation: NVIDIA RTX 2080 Ti"


class TestRecommendCloudInstances:
    """Tests for recommend_cloud_instances."""

    instances = (
        CloudInstance(provider="A", name="one-medium", gpu_name="Medium", gpu_count=1, hourly_rate=1.0),
        CloudInstance(provider="A", name="four-medium", gpu_name="Medium", gpu_count=4, hourly_rate=4.0),
        CloudInstance(provider="B", name="one-large", gpu_name="Large", gpu_count=1, hourly_rate=4.0),
        CloudInstance(provider="B", name="mystery", gpu_name="Unlisted", gpu_count=8, hourly_rate=0.1),
    )

    def test_cheapest_first(self):
        result = recommend_cloud_instances(20, instances=self.instances, gpus=CATALOGUE)
        assert [i.name for i in result] == ["one-medium", "one-large", "four-medium"]

    def test_aggregate_memory(self):
        result = recommend_cloud_instances(60, instances=self.instances, gpus=CATALOGUE)
        assert [i.name for i in result] == ["one-large", "four-medium"]
        four = result[1]
        assert four.total_memory_gb == 96
        assert four.memory_headroom_gb == pytest.approx(36)

    def test_equal_price_prefers_tighter_fit(self):
        result = recommend_cloud_instances(30, instances=self.instances, gpus=CATALOGUE)
        assert result[0].name == "one-large"
        assert result[1].name == "four-medium"

    def test_unknown_gpu_skipped(self):
        result = recommend_cloud_instances(1, max_results=10, instances=self.instances, gpus=CATALOGUE)
        assert "mystery" not in [i.name for i in result]

    def test_non_positive_requirement(self):
        assert recommend_cloud_instances(0, instances=self.instances, gpus=CATALOGUE) == []

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_max_results(self, limit):
        result = recommend_cloud_instances(1, max_results=limit, instances=self.instances, gpus=CATALOGUE)
        assert result == []

    def test_bundled_catalogue(self):
        result = recommend_cloud_instances(30)
        rates = [i.hourly_rate for i in result]
        assert 0 < len(result) <= 3
        assert rates == sorted(rates)
        assert all(i.total_memory_gb >= 30 for i in result)
