"""Pydantic data models for AI Project Prophet."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PrecisionBits(int, Enum):
    """Numeric storage precision in bits."""

    INT4 = 4
    INT8 = 8
    FP16 = 16
    FP32 = 32


class ExecutionMode(str, Enum):
    """Whether the model is served or trained."""

    INFERENCE = "inference"
    TRAINING = "training"


class OptimizerType(str, Enum):
    """Optimizers with a known state-to-weight memory ratio."""

    NONE = "none"
    ADAM = "adam"
    ADAMW = "adamw"
    ADAFACTOR = "adafactor"
    LAMB = "lamb"


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class GpuSpec(FrozenModel):
    """GPU catalogue entry."""

    name: str
    vendor: str = "NVIDIA"
    memory_gb: float = Field(ge=0)
    fp32_tflops: float = Field(ge=0)
    memory_bandwidth_gbs: float = Field(ge=0)


class CloudInstance(FrozenModel):
    """Cloud instance price catalogue entry."""

    provider: str
    name: str
    gpu_name: str
    gpu_count: int = Field(default=1, ge=1)
    hourly_rate: float = Field(ge=0, description="On-demand price in USD per hour")


class ArchitectureEstimate(FrozenModel):
    """Guessed decoder-only shape for a given parameter count."""

    hidden_size: int = 0
    num_layers: int = 0
    num_heads: int = 0
    intermediate_size: int = 0


class TransformerConfig(FrozenModel):
    """Explicit architecture description used for parameter counting.

    Values are not range checked; a non-positive dimension yields a zero estimate.
    """

    vocab_size: int
    hidden_size: int
    num_layers: int
    num_attention_heads: int
    intermediate_size: Optional[int] = None
    num_key_value_heads: Optional[int] = None

    @property
    def kv_heads(self) -> int:
        """KV heads for GQA/MQA."""
        if self.num_key_value_heads is not None and self.num_key_value_heads > 0:
            return self.num_key_value_heads
        return self.num_attention_heads


class MemoryEstimationInput(FrozenModel):
    """Inputs for a full memory breakdown."""

    parameter_count: float = Field(description="Raw parameter count")
    weight_precision_bits: PrecisionBits = PrecisionBits.FP16
    mode: ExecutionMode = ExecutionMode.INFERENCE
    hidden_size: int = 0
    num_layers: int = 0
    sequence_length: int = 0
    batch_size: int = 1
    kv_cache_precision_bits: Optional[PrecisionBits] = None
    activation_multiplier_override: Optional[float] = None
    optimizer: Optional[OptimizerType] = Field(
        default=None, description="Defaults to adamw for training, none for inference"
    )
    overhead_factor: float = 1.15

    @property
    def effective_optimizer(self) -> OptimizerType:
        if self.optimizer is not None:
            return self.optimizer
        if self.mode == ExecutionMode.TRAINING:
            return OptimizerType.ADAMW
        return OptimizerType.NONE


class MemoryBreakdown(FrozenModel):
    """Memory usage breakdown in GB."""

    weights_gb: float = 0
    activations_gb: float = 0
    kv_cache_gb: float = 0
    optimizer_gb: float = 0
    base_total_gb: float = Field(default=0, description="Sum of the four components")
    overhead_gb: float = Field(default=0, description="Framework/fragmentation allowance")
    total_gb: float = 0


class ThroughputEstimate(FrozenModel):
    """Generation speed of a single stream."""

    tokens_per_second: float = 0
    milliseconds_per_token: float = 0


class CloudCostEstimate(FrozenModel):
    """Cost of renting hardware for a fixed duration."""

    hourly_rate: float
    duration_hours: float
    total_cost: float


class RecommendedGpu(FrozenModel):
    """Catalogue GPU that fits a memory requirement."""

    name: str
    memory_gb: float
    fp32_tflops: float
    memory_headroom_gb: float = Field(ge=0)


class RecommendedInstance(FrozenModel):
    """Cloud instance whose GPUs together fit a memory requirement."""

    provider: str
    name: str
    gpu_name: str
    gpu_count: int
    total_memory_gb: float
    hourly_rate: float
    memory_headroom_gb: float = Field(ge=0)
