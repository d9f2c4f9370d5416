"""AI Project Prophet - hardware and cost estimates for transformer models."""

from .engine import (
    bits_to_bytes,
    calculate_activation_memory_gb,
    calculate_kv_cache_memory_gb,
    calculate_memory_from_billions,
    calculate_optimizer_memory_gb,
    calculate_weight_memory_gb,
    estimate_decoder_flops,
    estimate_inference_time,
    estimate_llama_style_architecture,
    estimate_memory,
    estimate_throughput,
    estimate_training_cost,
    estimate_transformer_parameters,
    format_cost,
    format_flops,
    format_gb,
    format_seconds,
)
from .loader import (
    get_cloud_instance,
    get_gpu,
    list_cloud_instances,
    list_gpu_names,
    load_cloud_instances,
    load_gpus,
)
from .models import (
    ArchitectureEstimate,
    CloudCostEstimate,
    CloudInstance,
    ExecutionMode,
    GpuSpec,
    MemoryBreakdown,
    MemoryEstimationInput,
    OptimizerType,
    PrecisionBits,
    RecommendedGpu,
    RecommendedInstance,
    ThroughputEstimate,
    TransformerConfig,
)
from .recommendations import (
    estimate_cloud_cost,
    estimate_instance_cost,
    recommend_cloud_instances,
    recommend_gpu,
    recommend_gpus,
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "bits_to_bytes",
    "estimate_llama_style_architecture",
    "estimate_transformer_parameters",
    "calculate_weight_memory_gb",
    "calculate_memory_from_billions",
    "calculate_activation_memory_gb",
    "calculate_kv_cache_memory_gb",
    "calculate_optimizer_memory_gb",
    "estimate_memory",
    "estimate_decoder_flops",
    "estimate_throughput",
    "estimate_inference_time",
    "estimate_training_cost",
    "format_gb",
    "format_seconds",
    "format_flops",
    "format_cost",
    # Loader
    "load_gpus",
    "load_cloud_instances",
    "get_gpu",
    "get_cloud_instance",
    "list_gpu_names",
    "list_cloud_instances",
    # Models
    "PrecisionBits",
    "ExecutionMode",
    "OptimizerType",
    "GpuSpec",
    "CloudInstance",
    "ArchitectureEstimate",
    "TransformerConfig",
    "MemoryEstimationInput",
    "MemoryBreakdown",
    "ThroughputEstimate",
    "CloudCostEstimate",
    "RecommendedGpu",
    "RecommendedInstance",
    # Recommendations
    "estimate_cloud_cost",
    "estimate_instance_cost",
    "recommend_gpus",
    "recommend_gpu",
    "recommend_cloud_instances",
]
