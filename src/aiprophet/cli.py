"""CLI interface for AI Project Prophet."""

import logging
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .engine import (
    bits_to_bytes,
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
from .loader import get_cloud_instance, get_gpu, list_cloud_instances, list_gpu_names, load_gpus
from .models import (
    ExecutionMode,
    GpuSpec,
    MemoryEstimationInput,
    OptimizerType,
    TransformerConfig,
)
from .recommendations import (
    estimate_cloud_cost,
    recommend_cloud_instances,
    recommend_gpu,
    recommend_gpus,
)

app = typer.Typer(
    name="aiprophet",
    help="AI Project Prophet - estimate hardware and costs of transformer projects",
    no_args_is_help=True,
)
console = Console()

gpu_app = typer.Typer(help="GPU catalogue commands")
cloud_app = typer.Typer(help="Cloud instance catalogue commands")
app.add_typer(gpu_app, name="gpu")
app.add_typer(cloud_app, name="cloud")

logger = logging.getLogger(__name__)


def parse_billion(value: str) -> float:
    """Parse a parameter count with optional B suffix (e.g., '7B' -> 7e9)."""
    value = value.strip().upper()
    if value.endswith("B"):
        return float(value[:-1]) * 1e9
    return float(value)


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(1)


def _parse_params(value: str) -> float:
    try:
        return parse_billion(value)
    except ValueError:
        _fail(f"Invalid parameter count: {value}")


def _resolve_gpu(name: str) -> GpuSpec:
    gpu = get_gpu(name)
    if gpu is None:
        console.print(f"[red]GPU '{name}' not found.[/red]")
        console.print(f"Available: {', '.join(list_gpu_names())}")
        raise typer.Exit(1)
    return gpu


def _fill_architecture(parameter_count: float, hidden_size: int, num_layers: int) -> tuple[int, int]:
    """Use the Llama-style archetype for any dimension left at 0."""
    if hidden_size > 0 and num_layers > 0:
        return hidden_size, num_layers
    arch = estimate_llama_style_architecture(parameter_count)
    logger.debug("Filling missing architecture from archetype %s", arch)
    return hidden_size or arch.hidden_size, num_layers or arch.num_layers


def _key_value_table(title: str) -> Table:
    table = Table(title=title, show_header=False, box=None, padding=(0, 2))
    table.add_column("Property", style="dim")
    table.add_column("Value", style="green")
    return table


def _print_gpu_recommendations(required_memory_gb: float, max_results: int) -> None:
    gpus = recommend_gpus(required_memory_gb, max_results)
    if not gpus:
        console.print("[yellow]No catalogue GPU has enough memory.[/yellow]")
        return

    table = Table(title="Recommended GPUs")
    table.add_column("Name", style="cyan")
    table.add_column("Memory", justify="right")
    table.add_column("FP32 TFLOPS", justify="right")
    table.add_column("Headroom", justify="right", style="green")
    for gpu in gpus:
        table.add_row(
            gpu.name,
            f"{gpu.memory_gb:g} GB",
            f"{gpu.fp32_tflops:g}",
            f"{gpu.memory_headroom_gb:.2f} GB",
        )
    console.print(table)


@app.command("arch")
def arch(
    params: Annotated[str, typer.Option("--params", "-p", help="Model parameters (e.g., 7B)")] = "7B",
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
):
    """Guess a Llama-style architecture from a parameter count."""
    result = estimate_llama_style_architecture(_parse_params(params))
    if json_output:
        console.print_json(result.model_dump_json())
        return

    table = _key_value_table(f"[Architecture for {params}]")
    table.add_row("Hidden Size", str(result.hidden_size))
    table.add_row("Layers", str(result.num_layers))
    table.add_row("Attention Heads", str(result.num_heads))
    table.add_row("Intermediate Size", str(result.intermediate_size))
    console.print(table)


@app.command("params")
def params_command(
    vocab_size: Annotated[int, typer.Option("--vocab", help="Vocabulary size")],
    hidden_size: Annotated[int, typer.Option("--hidden", help="Hidden size (d_model)")],
    num_layers: Annotated[int, typer.Option("--layers", "-l", help="Number of layers")],
    num_heads: Annotated[int, typer.Option("--heads", help="Attention heads")],
    kv_heads: Annotated[Optional[int], typer.Option("--kv-heads", help="Key/value heads (GQA/MQA)")] = None,
    intermediate_size: Annotated[Optional[int], typer.Option("--intermediate", help="MLP width")] = None,
):
    """Estimate the parameter count of a transformer."""
    config = TransformerConfig(
        vocab_size=vocab_size,
        hidden_size=hidden_size,
        num_layers=num_layers,
        num_attention_heads=num_heads,
        intermediate_size=intermediate_size,
        num_key_value_heads=kv_heads,
    )
    count = estimate_transformer_parameters(config)
    console.print(f"Estimated parameters: [bold green]{count:,}[/bold green] ({count / 1e9:.2f}B)")


@app.command("memory")
def memory(
    params: Annotated[str, typer.Option("--params", "-p", help="Model parameters (e.g., 7B)")] = "7B",
    bits: Annotated[int, typer.Option("--bits", help="Weight precision (4, 8, 16, 32)")] = 16,
    mode: Annotated[ExecutionMode, typer.Option("--mode", "-m", help="Execution mode")] = ExecutionMode.INFERENCE,
    hidden_size: Annotated[int, typer.Option("--hidden", help="Hidden size, guessed when 0")] = 0,
    num_layers: Annotated[int, typer.Option("--layers", "-l", help="Layers, guessed when 0")] = 0,
    seq_length: Annotated[int, typer.Option("--seq-length", "-s", help="Sequence length")] = 2048,
    batch_size: Annotated[int, typer.Option("--batch-size", "-b", help="Batch size")] = 1,
    kv_bits: Annotated[Optional[int], typer.Option("--kv-bits", help="KV cache precision")] = None,
    optimizer: Annotated[Optional[OptimizerType], typer.Option("--optimizer", help="Optimizer (training)")] = None,
    activation_multiplier: Annotated[
        Optional[float], typer.Option("--activation-multiplier", help="Override activation multiplier")
    ] = None,
    overhead: Annotated[float, typer.Option("--overhead", help="Overhead factor")] = 1.15,
    max_results: Annotated[int, typer.Option("--max-results", help="GPUs to recommend")] = 3,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
):
    """Estimate memory for serving or training a model."""
    parameter_count = _parse_params(params)
    hidden_size, num_layers = _fill_architecture(parameter_count, hidden_size, num_layers)

    try:
        result = estimate_memory(
            MemoryEstimationInput(
                parameter_count=parameter_count,
                weight_precision_bits=bits,
                mode=mode,
                hidden_size=hidden_size,
                num_layers=num_layers,
                sequence_length=seq_length,
                batch_size=batch_size,
                kv_cache_precision_bits=kv_bits,
                activation_multiplier_override=activation_multiplier,
                optimizer=optimizer,
                overhead_factor=overhead,
            )
        )
    except ValueError as e:
        _fail(f"Invalid input: {e}")

    if json_output:
        console.print_json(result.model_dump_json())
        return

    table = _key_value_table(f"[Memory Breakdown ({mode.value})]")
    table.add_row("Weights", f"{format_gb(result.weights_gb)} GB")
    table.add_row("Activations", f"{format_gb(result.activations_gb)} GB")
    if mode == ExecutionMode.INFERENCE:
        table.add_row("KV Cache", f"{format_gb(result.kv_cache_gb)} GB")
    else:
        table.add_row("Optimizer States", f"{format_gb(result.optimizer_gb)} GB")
    table.add_row("Overhead", f"{format_gb(result.overhead_gb)} GB")
    table.add_row("-" * 20, "-" * 10)
    table.add_row("Total", f"{format_gb(result.total_gb)} GB")
    console.print(table)
    console.print()
    _print_gpu_recommendations(result.total_gb, max_results)


@app.command("flops")
def flops(
    num_layers: Annotated[int, typer.Option("--layers", "-l", help="Number of layers")],
    hidden_size: Annotated[int, typer.Option("--hidden", help="Hidden size")],
    vocab_size: Annotated[int, typer.Option("--vocab", help="Vocabulary size")],
    seq_length: Annotated[int, typer.Option("--seq-length", "-s", help="Sequence length")] = 512,
):
    """Estimate FLOPs of one forward pass."""
    result = estimate_decoder_flops(num_layers, hidden_size, seq_length, vocab_size)
    console.print(f"Forward pass: [bold green]{format_flops(result)}[/bold green] ({result / 1e9:,.1f} GFLOPs)")


@app.command("throughput")
def throughput(
    params: Annotated[str, typer.Option("--params", "-p", help="Model parameters (e.g., 7B)")] = "7B",
    gpu: Annotated[str, typer.Option("--gpu", "-g", help="GPU model name")] = "A100-80G",
    efficiency: Annotated[float, typer.Option("--efficiency", help="Fraction of peak achieved")] = 0.3,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
):
    """Estimate tokens per second on a single GPU."""
    hw = _resolve_gpu(gpu)
    result = estimate_throughput(_parse_params(params), hw.fp32_tflops, efficiency)
    if json_output:
        console.print_json(result.model_dump_json())
        return

    table = _key_value_table(f"[Throughput on {hw.name}]")
    table.add_row("Tokens / second", f"{result.tokens_per_second:,.1f}")
    table.add_row("ms / token", f"{result.milliseconds_per_token:.2f}")
    console.print(table)


@app.command("latency")
def latency(
    params: Annotated[str, typer.Option("--params", "-p", help="Model parameters (e.g., 7B)")] = "7B",
    gpu: Annotated[str, typer.Option("--gpu", "-g", help="GPU model name")] = "A100-80G",
    seq_length: Annotated[int, typer.Option("--seq-length", "-s", help="Sequence length")] = 512,
    vocab_size: Annotated[int, typer.Option("--vocab", help="Vocabulary size")] = 32000,
    bits: Annotated[int, typer.Option("--bits", help="Weight precision (4, 8, 16, 32)")] = 16,
    overhead: Annotated[float, typer.Option("--overhead", help="Overhead factor")] = 1.2,
):
    """Estimate the latency of one forward pass (roofline model)."""
    hw = _resolve_gpu(gpu)
    parameter_count = _parse_params(params)
    hidden_size, num_layers = _fill_architecture(parameter_count, 0, 0)
    gflops = estimate_decoder_flops(num_layers, hidden_size, seq_length, vocab_size) / 1e9

    try:
        seconds = estimate_inference_time(
            gflops, hw.fp32_tflops, parameter_count, hw.memory_bandwidth_gbs, overhead, bits_to_bytes(bits)
        )
    except ValueError as e:
        _fail(f"Invalid input: {e}")

    console.print(f"Estimated inference time on {hw.name}: [bold green]{format_seconds(seconds)}[/bold green]")


@app.command("train-cost")
def train_cost(
    params: Annotated[str, typer.Option("--params", "-p", help="Model parameters (e.g., 7B)")] = "7B",
    gpu: Annotated[str, typer.Option("--gpu", "-g", help="GPU model name")] = "A100-80G",
    hourly: Annotated[Optional[float], typer.Option("--hourly", help="GPU hourly cost")] = None,
    instance: Annotated[Optional[str], typer.Option("--instance", help="Cloud instance for pricing")] = None,
    epochs: Annotated[int, typer.Option("--epochs", "-e", help="Number of epochs")] = 1,
    dataset_size: Annotated[int, typer.Option("--dataset-size", help="Number of sequences")] = 100_000,
    seq_length: Annotated[int, typer.Option("--seq-length", "-s", help="Sequence length")] = 512,
    vocab_size: Annotated[int, typer.Option("--vocab", help="Vocabulary size")] = 32000,
    bits: Annotated[int, typer.Option("--bits", help="Model precision (4, 8, 16, 32)")] = 16,
    overhead: Annotated[float, typer.Option("--overhead", help="Overhead factor")] = 1.2,
):
    """Estimate the cloud cost of training a model."""
    hw = _resolve_gpu(gpu)
    if instance is not None:
        cloud_instance = get_cloud_instance(instance)
        if cloud_instance is None:
            _fail(f"Cloud instance '{instance}' not found.")
        hourly = cloud_instance.hourly_rate / cloud_instance.gpu_count
    if hourly is None:
        _fail("Specify --hourly or --instance.")

    parameter_count = _parse_params(params)
    hidden_size, num_layers = _fill_architecture(parameter_count, 0, 0)
    gflops = estimate_decoder_flops(num_layers, hidden_size, seq_length, vocab_size) / 1e9

    try:
        cost = estimate_training_cost(
            gflops,
            hw.fp32_tflops,
            parameter_count,
            hw.memory_bandwidth_gbs,
            overhead,
            hourly,
            epochs,
            dataset_size,
            bits,
        )
    except ValueError as e:
        _fail(f"Invalid input: {e}")

    table = _key_value_table("[Cloud Training Estimate]")
    table.add_row("Model", f"{parameter_count / 1e9:g}B params")
    table.add_row("GPU", f"{hw.name} ({hw.fp32_tflops:g} TFLOPS)")
    table.add_row("GPU Hourly Cost", format_cost(hourly))
    table.add_row("Forward Pass", f"{gflops:,.1f} GFLOPs / sequence")
    table.add_row("Data", f"{dataset_size:,} sequences x {epochs} epochs")
    table.add_row("Estimated Cost", format_cost(cost))
    console.print(table)


@app.command("cost")
def cost(
    hours: Annotated[float, typer.Option("--hours", help="Duration in hours")],
    hourly: Annotated[Optional[float], typer.Option("--hourly", help="Hourly rate")] = None,
    instance: Annotated[Optional[str], typer.Option("--instance", help="Cloud instance for pricing")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
):
    """Estimate the cost of renting hardware."""
    if instance is not None:
        cloud_instance = get_cloud_instance(instance)
        if cloud_instance is None:
            _fail(f"Cloud instance '{instance}' not found.")
        hourly = cloud_instance.hourly_rate
    if hourly is None:
        _fail("Specify --hourly or --instance.")

    try:
        result = estimate_cloud_cost(hourly, hours)
    except ValueError as e:
        _fail(f"Invalid input: {e}")

    if json_output:
        console.print_json(result.model_dump_json())
        return
    console.print(
        f"{format_cost(result.hourly_rate)}/h x {result.duration_hours:g} h = "
        f"[bold green]{format_cost(result.total_cost)}[/bold green]"
    )


@app.command("recommend")
def recommend(
    memory_gb: Annotated[float, typer.Option("--memory-gb", help="Required memory in GB")],
    max_results: Annotated[int, typer.Option("--max-results", "-n", help="Maximum results")] = 3,
    flops_value: Annotated[
        Optional[float], typer.Option("--flops", help="Workload FLOPs for the tiered recommendation")
    ] = None,
    instances: Annotated[bool, typer.Option("--instances/--no-instances", help="Also list cloud instances")] = False,
):
    """Recommend GPUs (and optionally cloud instances) for a memory requirement."""
    if flops_value is not None:
        console.print(recommend_gpu(memory_gb, flops_value))

    _print_gpu_recommendations(memory_gb, max_results)

    if instances:
        table = Table(title="Cheapest Cloud Instances")
        table.add_column("Provider", style="cyan")
        table.add_column("Instance")
        table.add_column("GPUs", justify="right")
        table.add_column("Memory", justify="right")
        table.add_column("Hourly", justify="right", style="green")
        for inst in recommend_cloud_instances(memory_gb, max_results):
            table.add_row(
                inst.provider,
                inst.name,
                f"{inst.gpu_count}x {inst.gpu_name}",
                f"{inst.total_memory_gb:g} GB",
                format_cost(inst.hourly_rate),
            )
        console.print(table)


@gpu_app.command("list")
def gpu_list():
    """List all GPUs in the catalogue."""
    table = Table(title="GPU Catalogue")
    table.add_column("Name", style="cyan")
    table.add_column("Vendor", style="green")
    table.add_column("Memory", justify="right")
    table.add_column("FP32 TFLOPS", justify="right")
    table.add_column("Bandwidth", justify="right")

    for gpu in load_gpus():
        table.add_row(
            gpu.name,
            gpu.vendor,
            f"{gpu.memory_gb:g} GB",
            f"{gpu.fp32_tflops:g}",
            f"{gpu.memory_bandwidth_gbs:g} GB/s",
        )

    console.print(table)


@gpu_app.command("show")
def gpu_show(name: str):
    """Show details of a specific GPU."""
    gpu = _resolve_gpu(name)

    table = Table(title=f"GPU: {gpu.name}")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Vendor", gpu.vendor)
    table.add_row("Memory", f"{gpu.memory_gb:g} GB")
    table.add_row("Memory Bandwidth", f"{gpu.memory_bandwidth_gbs:g} GB/s")
    table.add_row("Peak FP32 TFLOPS", f"{gpu.fp32_tflops:g}")
    console.print(table)


@cloud_app.command("list")
def cloud_list(
    provider: Annotated[Optional[str], typer.Option("--provider", help="Filter by provider")] = None,
):
    """List cloud instances and their hourly rates."""
    table = Table(title="Cloud Instances")
    table.add_column("Provider", style="cyan")
    table.add_column("Instance")
    table.add_column("GPUs", justify="right")
    table.add_column("Hourly", justify="right", style="green")

    for inst in list_cloud_instances(provider):
        table.add_row(inst.provider, inst.name, f"{inst.gpu_count}x {inst.gpu_name}", format_cost(inst.hourly_rate))

    console.print(table)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
):
    """AI Project Prophet - estimate hardware and costs of transformer projects."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        force=True,
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


if __name__ == "__main__":
    app()
