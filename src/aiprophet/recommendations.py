"""Cost estimates and hardware recommendations."""

import logging
from collections.abc import Iterable
from typing import Optional

from .loader import get_cloud_instance, load_cloud_instances, load_gpus
from .models import (
    CloudCostEstimate,
    CloudInstance,
    GpuSpec,
    RecommendedGpu,
    RecommendedInstance,
)

logger = logging.getLogger(__name__)

# (max memory GB, max FLOPs, label), checked in order
LEGACY_GPU_TIERS = (
    (8, 1e9, "NVIDIA GTX 1060 6GB"),
    (11, 2e9, "NVIDIA GTX 1080 Ti"),
    (24, 5e9, "NVIDIA RTX 2080 Ti"),
)
LEGACY_TOP_TIER = "NVIDIA A100 or higher"


def estimate_cloud_cost(hourly_rate: float, duration_hours: float) -> CloudCostEstimate:
    """
    Cost of renting an instance for a fixed duration.

    Raises:
        ValueError: If the rate or the duration is negative
    """
    if hourly_rate < 0 or duration_hours < 0:
        logger.debug("Rejecting cloud cost input rate=%r hours=%r", hourly_rate, duration_hours)
        raise ValueError("hourly_rate and duration_hours must be non-negative")

    return CloudCostEstimate(
        hourly_rate=hourly_rate,
        duration_hours=duration_hours,
        total_cost=hourly_rate * duration_hours,
    )


def estimate_instance_cost(instance_name: str, duration_hours: float) -> CloudCostEstimate:
    """
    Cost of renting a catalogue instance for a fixed duration.

    Raises:
        ValueError: If the instance is unknown or the duration is negative
    """
    instance = get_cloud_instance(instance_name)
    if instance is None:
        raise ValueError(f"Unknown cloud instance: {instance_name}")
    return estimate_cloud_cost(instance.hourly_rate, duration_hours)


def recommend_gpus(
    required_memory_gb: float,
    max_results: int = 3,
    gpus: Optional[Iterable[GpuSpec]] = None,
) -> list[RecommendedGpu]:
    """
    Recommend GPUs that can hold ``required_memory_gb``.

    GPUs are ordered by memory headroom, tightest fit first.

    Args:
        required_memory_gb: Memory the workload needs
        max_results: Maximum number of GPUs returned
        gpus: GPU catalogue, the bundled one when omitted

    Returns:
        Recommended GPUs, empty when the requirement is non-positive
    """
    if required_memory_gb <= 0:
        return []

    catalogue = load_gpus() if gpus is None else gpus
    candidates = [
        RecommendedGpu(
            name=gpu.name,
            memory_gb=gpu.memory_gb,
            fp32_tflops=gpu.fp32_tflops,
            memory_headroom_gb=gpu.memory_gb - required_memory_gb,
        )
        for gpu in catalogue
        if gpu.memory_gb >= required_memory_gb
    ]
    candidates.sort(key=lambda gpu: gpu.memory_headroom_gb)
    return candidates[:max(0, max_results)]


def recommend_gpu(memory_gb: float, flops: float) -> str:
    """Minimum GPU from a fixed four-tier table of memory and FLOPs ceilings."""
    for max_memory_gb, max_flops, label in LEGACY_GPU_TIERS:
        if memory_gb <= max_memory_gb and flops <= max_flops:
            return f"Minimum recommendation: {label}"
    return f"Minimum recommendation: {LEGACY_TOP_TIER}"


def recommend_cloud_instances(
    required_memory_gb: float,
    max_results: int = 3,
    instances: Optional[Iterable[CloudInstance]] = None,
    gpus: Optional[Iterable[GpuSpec]] = None,
) -> list[RecommendedInstance]:
    """
    Recommend the cheapest cloud instances whose GPUs together hold ``required_memory_gb``.

    Instances whose GPU is missing from the GPU catalogue are skipped. Equal
    prices are ordered by memory headroom.

    Args:
        required_memory_gb: Memory the workload needs
        max_results: Maximum number of instances returned
        instances: Instance catalogue, the bundled one when omitted
        gpus: GPU catalogue, the bundled one when omitted

    Returns:
        Recommended instances, empty when the requirement is non-positive
    """
    if required_memory_gb <= 0:
        return []

    gpu_memory = {gpu.name.lower(): gpu.memory_gb for gpu in (load_gpus() if gpus is None else gpus)}
    candidates = []
    for instance in load_cloud_instances() if instances is None else instances:
        memory_per_gpu = gpu_memory.get(instance.gpu_name.lower())
        if memory_per_gpu is None:
            logger.warning("Instance %s uses unknown GPU %s", instance.name, instance.gpu_name)
            continue
        total_memory_gb = memory_per_gpu * instance.gpu_count
        if total_memory_gb < required_memory_gb:
            continue
        candidates.append(
            RecommendedInstance(
                provider=instance.provider,
                name=instance.name,
                gpu_name=instance.gpu_name,
                gpu_count=instance.gpu_count,
                total_memory_gb=total_memory_gb,
                hourly_rate=instance.hourly_rate,
                memory_headroom_gb=total_memory_gb - required_memory_gb,
            )
        )

    candidates.sort(key=lambda i: (i.hourly_rate, i.memory_headroom_gb))
    return candidates[:max(0, max_results)]
