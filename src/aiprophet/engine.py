"""Core estimation engine: parameters, memory, FLOPs and latency.

Every function here is a pure closed-form approximation. Non-positive or
unknown inputs degrade to zero so that partially filled forms still produce a
result; only genuinely invalid domain values raise ``ValueError``.
"""

import logging
import math
from typing import Optional, Union

from .models import (
    ArchitectureEstimate,
    ExecutionMode,
    MemoryBreakdown,
    MemoryEstimationInput,
    OptimizerType,
    PrecisionBits,
    ThroughputEstimate,
    TransformerConfig,
)

logger = logging.getLogger(__name__)

BYTES_PER_GB = 1024**3

DEFAULT_OVERHEAD = 1.15
DEFAULT_EFFICIENCY = 0.3

DEFAULT_ACTIVATION_MULTIPLIER = {
    ExecutionMode.INFERENCE: 0.2,
    ExecutionMode.TRAINING: 2.0,
}

# Optimizer state size relative to the raw weight bytes
OPTIMIZER_MULTIPLIER = {
    OptimizerType.NONE: 0.0,
    OptimizerType.ADAM: 4.0,
    OptimizerType.ADAMW: 4.0,
    OptimizerType.LAMB: 4.0,
    OptimizerType.ADAFACTOR: 1.5,
}

# (max params in billions, hidden size, layers), ascending
LLAMA_STYLE_ARCHETYPES = (
    (1.5, 2048, 24),
    (3.5, 2560, 28),
    (8.0, 4096, 32),
    (16.0, 5120, 40),
    (40.0, 6656, 60),
    (80.0, 8192, 80),
    (math.inf, 10240, 96),
)

# Fixed per-parameter optimizer state (fp32 momentum + variance) used by the training roofline
TRAINING_OPTIMIZER_BYTES = 8

Bits = Union[PrecisionBits, int]


def bits_to_bytes(bits: Bits) -> float:
    """Convert a precision width to bytes per element."""
    return PrecisionBits(bits).value / 8


def estimate_llama_style_architecture(parameter_count: float) -> ArchitectureEstimate:
    """
    Guess a Llama-style decoder shape from a total parameter count.

    The first archetype whose ceiling covers ``parameter_count / 1e9`` is used.
    Head count assumes a head dimension of 128 and the MLP width is 4x hidden.

    Args:
        parameter_count: Raw parameter count

    Returns:
        Architecture estimate, all zeros when the count is unknown
    """
    if not math.isfinite(parameter_count) or parameter_count <= 0:
        logger.debug("No architecture estimate for parameter count %r", parameter_count)
        return ArchitectureEstimate()

    params_billion = parameter_count / 1e9
    for max_billions, hidden_size, num_layers in LLAMA_STYLE_ARCHETYPES:
        if params_billion <= max_billions:
            break

    return ArchitectureEstimate(
        hidden_size=hidden_size,
        num_layers=num_layers,
        num_heads=max(1, round(hidden_size / 128)),
        intermediate_size=hidden_size * 4,
    )


def estimate_transformer_parameters(config: TransformerConfig) -> int:
    """
    Estimate the parameter count of a decoder from its architecture.

    Formula per layer:
      attention: Q (h^2) + K/V (h * kv_head_dim * kv_heads * 2) + output (h^2),
                 doubled to approximate weights and biases
      MLP: h * intermediate * 2
      norms: 2 * (h * 2)
    plus a vocab * h embedding. This is an order-of-magnitude estimate, not an
    exact reproduction of any checkpoint.

    Args:
        config: Transformer architecture

    Returns:
        Estimated parameter count, 0 when a required dimension is non-positive
    """
    h = config.hidden_size
    if config.vocab_size <= 0 or h <= 0 or config.num_layers <= 0 or config.num_attention_heads <= 0:
        return 0

    kv_heads = config.kv_heads
    kv_head_dim = h / kv_heads

    embedding_params = config.vocab_size * h

    qkv_params = h * h + h * kv_head_dim * kv_heads * 2
    attention_output_params = h * h
    attention_params = qkv_params + attention_output_params

    intermediate = config.intermediate_size
    if not intermediate or intermediate <= 0:
        intermediate = h * 4
    mlp_params = h * intermediate * 2
    norm_params = h * 2

    layer_params = attention_params * 2 + mlp_params + norm_params * 2
    return int(round(embedding_params + config.num_layers * layer_params))


def calculate_weight_memory_gb(parameter_count: float, weight_precision_bits: Bits) -> float:
    """Memory to hold the weights, in GB (1024^3 bytes)."""
    if parameter_count <= 0:
        return 0.0
    return parameter_count * bits_to_bytes(weight_precision_bits) / BYTES_PER_GB


def calculate_memory_from_billions(params_billion: float, weight_precision_bits: Bits) -> float:
    """Same as :func:`calculate_weight_memory_gb` for a count given in billions."""
    if params_billion <= 0:
        return 0.0
    return calculate_weight_memory_gb(params_billion * 1e9, weight_precision_bits)


def calculate_activation_memory_gb(
    parameter_count: float,
    weight_precision_bits: Bits,
    mode: Union[ExecutionMode, str],
    multiplier_override: Optional[float] = None,
) -> float:
    """
    Approximate activation memory as a fraction of the weight memory.

    Defaults are 0.2x weights for inference and 2x weights for training.
    """
    if parameter_count <= 0:
        return 0.0
    if multiplier_override is not None:
        multiplier = max(0.0, multiplier_override)
    else:
        multiplier = DEFAULT_ACTIVATION_MULTIPLIER[ExecutionMode(mode)]
    return calculate_weight_memory_gb(parameter_count, weight_precision_bits) * multiplier


def calculate_kv_cache_memory_gb(
    sequence_length: int,
    batch_size: int,
    num_layers: int,
    hidden_size: int,
    precision_bits: Bits,
) -> float:
    """
    Calculate KV cache memory for inference.

    Formula: 2 (K and V) * layers * hidden * bytes * seq * batch

    Returns:
        Memory in GB, 0 when any dimension is non-positive
    """
    if sequence_length <= 0 or batch_size <= 0 or num_layers <= 0 or hidden_size <= 0:
        return 0.0

    kv_per_token = 2 * num_layers * hidden_size * bits_to_bytes(precision_bits)
    return kv_per_token * sequence_length * batch_size / BYTES_PER_GB


def calculate_optimizer_memory_gb(
    parameter_count: float,
    weight_precision_bits: Bits,
    optimizer: Union[OptimizerType, str],
) -> float:
    """Optimizer state memory in GB; a fixed multiple of the weight bytes per optimizer."""
    if parameter_count <= 0:
        return 0.0
    multiplier = OPTIMIZER_MULTIPLIER[OptimizerType(optimizer)]
    weight_bytes = parameter_count * bits_to_bytes(weight_precision_bits)
    return weight_bytes * multiplier / BYTES_PER_GB


def estimate_memory(config: MemoryEstimationInput) -> MemoryBreakdown:
    """
    Estimate the complete memory footprint of serving or training a model.

    KV cache is only counted for inference and optimizer state only for
    training. The summed components are scaled by ``overhead_factor``.

    Args:
        config: Memory estimation inputs

    Returns:
        Memory breakdown in GB

    Raises:
        ValueError: If the parameter count is negative
    """
    if config.parameter_count < 0:
        logger.debug("Rejecting negative parameter count %r", config.parameter_count)
        raise ValueError("parameter_count must be non-negative")

    bits = config.weight_precision_bits
    weights_gb = calculate_weight_memory_gb(config.parameter_count, bits)
    activations_gb = calculate_activation_memory_gb(
        config.parameter_count,
        bits,
        config.mode,
        config.activation_multiplier_override,
    )

    kv_cache_gb = 0.0
    if config.mode == ExecutionMode.INFERENCE:
        kv_cache_gb = calculate_kv_cache_memory_gb(
            sequence_length=config.sequence_length,
            batch_size=config.batch_size,
            num_layers=config.num_layers,
            hidden_size=config.hidden_size,
            precision_bits=config.kv_cache_precision_bits or bits,
        )

    optimizer_gb = 0.0
    if config.mode == ExecutionMode.TRAINING:
        optimizer_gb = calculate_optimizer_memory_gb(
            config.parameter_count, bits, config.effective_optimizer
        )

    base_total_gb = weights_gb + activations_gb + kv_cache_gb + optimizer_gb
    overhead_gb = base_total_gb * max(0.0, config.overhead_factor - 1)

    return MemoryBreakdown(
        weights_gb=weights_gb,
        activations_gb=activations_gb,
        kv_cache_gb=kv_cache_gb,
        optimizer_gb=optimizer_gb,
        base_total_gb=base_total_gb,
        overhead_gb=overhead_gb,
        total_gb=base_total_gb + overhead_gb,
    )


def estimate_decoder_flops(
    num_layers: int,
    hidden_size: int,
    sequence_length: int,
    vocab_size: int,
) -> float:
    """
    Calculate FLOPs of one forward pass over ``sequence_length`` tokens.

    Formula:
      attention: 4 * L * s * h^2
      MLP: 8 * L * s * h^2
      output projection: 2 * s * h * V

    Returns:
        FLOPs, 0 when any dimension is non-positive
    """
    if num_layers <= 0 or hidden_size <= 0 or sequence_length <= 0 or vocab_size <= 0:
        return 0.0

    attention_flops = 4 * num_layers * sequence_length * hidden_size**2
    mlp_flops = 8 * num_layers * sequence_length * hidden_size**2
    projection_flops = 2 * sequence_length * hidden_size * vocab_size
    return float(attention_flops + mlp_flops + projection_flops)


def estimate_throughput(
    parameter_count: float,
    gpu_tflops: float,
    efficiency: float = DEFAULT_EFFICIENCY,
) -> ThroughputEstimate:
    """
    Estimate single-stream generation speed.

    Each generated token costs about 2 FLOPs per parameter; the GPU delivers
    ``gpu_tflops * efficiency`` of useful work.
    """
    if parameter_count <= 0 or gpu_tflops <= 0 or efficiency <= 0:
        return ThroughputEstimate()

    flops_per_token = parameter_count * 2
    effective_flops_per_second = gpu_tflops * 1e12 * efficiency
    tokens_per_second = effective_flops_per_second / flops_per_token
    milliseconds_per_token = 1000 / tokens_per_second if tokens_per_second else 0.0

    return ThroughputEstimate(
        tokens_per_second=tokens_per_second,
        milliseconds_per_token=milliseconds_per_token,
    )


def estimate_inference_time(
    flops_gflops: float,
    gpu_tflops: float,
    num_params: float,
    memory_bandwidth_gbs: float,
    overhead_factor: float,
    bytes_per_param: float,
) -> float:
    """
    Roofline latency of one operation.

    Compute and weight transfer overlap, so the slower of the two bounds the
    latency:

      compute_time = flops / peak_flops
      memory_time = params * bytes_per_param / bandwidth
      time = max(compute_time, memory_time) * overhead_factor

    Args:
        flops_gflops: Work of the operation in GFLOPs
        gpu_tflops: Peak GPU throughput in TFLOPS
        num_params: Raw parameter count
        memory_bandwidth_gbs: Memory bandwidth in GB/s (1024^3 bytes)
        overhead_factor: Multiplier for framework overhead
        bytes_per_param: Bytes moved per parameter

    Returns:
        Time in seconds, 0 when the GPU throughput or bandwidth is unknown
    """
    if gpu_tflops <= 0 or memory_bandwidth_gbs <= 0:
        logger.debug("Unknown GPU throughput or bandwidth, inference time is 0")
        return 0.0

    compute_time = flops_gflops * 1e9 / (gpu_tflops * 1e12)
    memory_time = num_params * bytes_per_param / (memory_bandwidth_gbs * BYTES_PER_GB)
    return max(compute_time, memory_time) * overhead_factor


def estimate_training_cost(
    inference_gflops_per_sequence: float,
    gpu_tflops: float,
    num_params: float,
    memory_bandwidth_gbs: float,
    overhead_factor: float,
    gpu_hourly_cost: float,
    num_epochs: int,
    dataset_size: int,
    model_precision_bits: Bits,
) -> float:
    """
    Estimate the cost of training on rented GPUs.

    A training step is taken as 3x the forward FLOPs (forward + 2x backward).
    Per parameter the step moves model and gradient bytes plus 8 bytes of
    Adam-style optimizer state.

    Args:
        inference_gflops_per_sequence: Forward-pass GFLOPs for one sequence
        gpu_tflops: Peak GPU throughput in TFLOPS
        num_params: Raw parameter count
        memory_bandwidth_gbs: Memory bandwidth in GB/s
        overhead_factor: Multiplier for framework overhead
        gpu_hourly_cost: Price per GPU hour
        num_epochs: Passes over the dataset
        dataset_size: Number of sequences
        model_precision_bits: Weight and gradient precision

    Returns:
        Total cost in the currency of ``gpu_hourly_cost``
    """
    training_gflops = inference_gflops_per_sequence * 3
    model_bytes = bits_to_bytes(model_precision_bits)
    gradient_bytes = model_bytes
    bytes_per_param = model_bytes + gradient_bytes + TRAINING_OPTIMIZER_BYTES

    time_per_item = estimate_inference_time(
        training_gflops,
        gpu_tflops,
        num_params,
        memory_bandwidth_gbs,
        overhead_factor,
        bytes_per_param,
    )
    total_hours = time_per_item * dataset_size * num_epochs / 3600
    return total_hours * gpu_hourly_cost


def format_gb(value: float) -> str:
    """Format a GB amount for display."""
    if value <= 0:
        return "N/A"
    if value < 1:
        return "<1"
    return f"{value:.2f}"


def format_seconds(seconds: float) -> str:
    """Format a latency to a human-readable string."""
    if 0 < seconds < 0.001:
        return f"{seconds * 1000:.2f} ms"
    elif seconds < 1:
        return f"{seconds:.4f} s"
    elif seconds < 60:
        return f"{seconds:.2f} s"
    else:
        return f"{seconds / 60:.2f} min"


def format_flops(flops: float) -> str:
    """Format FLOPs to human-readable string."""
    if flops >= 1e24:
        return f"{flops / 1e24:.2f} YFLOPs"
    elif flops >= 1e21:
        return f"{flops / 1e21:.2f} ZFLOPs"
    elif flops >= 1e18:
        return f"{flops / 1e18:.2f} EFLOPs"
    elif flops >= 1e15:
        return f"{flops / 1e15:.2f} PFLOPs"
    elif flops >= 1e12:
        return f"{flops / 1e12:.2f} TFLOPs"
    else:
        return f"{flops / 1e9:.2f} GFLOPs"


def format_cost(amount: float) -> str:
    """Format a dollar amount."""
    return f"${amount:,.2f}"
