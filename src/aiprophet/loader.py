"""Data loaders for the GPU and cloud instance catalogues."""

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from .models import CloudInstance, GpuSpec

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "AIPROPHET_DATA_DIR"


def _get_data_dir() -> Path:
    """Get the data directory path."""
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        path = Path(env_dir)
        if path.is_dir():
            return path
        logger.warning("%s=%s is not a directory, ignoring it", DATA_DIR_ENV, env_dir)

    # Package data first
    package_data = Path(__file__).parent / "data"
    if package_data.exists():
        return package_data

    # Fall back to current working directory
    cwd_data = Path.cwd() / "data"
    if cwd_data.exists():
        return cwd_data

    raise FileNotFoundError(
        "Data directory not found. Expected at package/data or ./data"
    )


def _read_json(filename: str) -> dict:
    path = _get_data_dir() / filename
    logger.debug("Loading %s", path)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@lru_cache(maxsize=1)
def load_gpus() -> tuple[GpuSpec, ...]:
    """Load all GPU specifications from gpus.json."""
    data = _read_json("gpus.json")
    return tuple(GpuSpec(**gpu) for gpu in data["gpus"])


@lru_cache(maxsize=1)
def load_cloud_instances() -> tuple[CloudInstance, ...]:
    """Load the cloud instance price list from cloud_instances.json."""
    data = _read_json("cloud_instances.json")
    return tuple(CloudInstance(**instance) for instance in data["instances"])


def get_gpu(name: str) -> Optional[GpuSpec]:
    """Get GPU specification by name (case-insensitive)."""
    name_lower = name.lower()
    for gpu in load_gpus():
        if gpu.name.lower() == name_lower:
            return gpu
    return None


def get_cloud_instance(name: str) -> Optional[CloudInstance]:
    """Get cloud instance by name (case-insensitive)."""
    name_lower = name.lower()
    for instance in load_cloud_instances():
        if instance.name.lower() == name_lower:
            return instance
    return None


def list_gpu_names() -> list[str]:
    """List all available GPU names."""
    return [gpu.name for gpu in load_gpus()]


def list_cloud_instances(provider: Optional[str] = None) -> list[CloudInstance]:
    """List cloud instances, optionally for one provider (case-insensitive)."""
    instances = load_cloud_instances()
    if provider is None:
        return list(instances)
    provider_lower = provider.lower()
    return [i for i in instances if i.provider.lower() == provider_lower]
