"""Inference runtime backend selection.

Translates the integer run option passed on the command line into a
``BackendOption`` value, and materializes ``fastdeploy.RuntimeOption``
objects from it. A ``BackendOption`` is never mutated: per-stage variants
(shape profile, TRT cache file) are derived copies, and every stage gets its
own freshly built ``RuntimeOption``.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from core.logging import log

# FastDeploy import (PaddlePaddle inference runtime)
try:
    import fastdeploy as fd
    FASTDEPLOY_AVAILABLE = True
except ImportError as e:
    fd = None
    FASTDEPLOY_AVAILABLE = False
    log.warning(f"FastDeploy not installed. The OCR pipeline cannot be built. Error: {str(e)}")
    log.warning("Install with: pip install fastdeploy-python -f https://www.paddlepaddle.org.cn/whl/fastdeploy.html")


Shape = Tuple[int, int, int, int]


class Device(str, Enum):
    CPU = "cpu"
    GPU = "gpu"


class Backend(str, Enum):
    PADDLE = "paddle"            # Paddle Inference
    OPENVINO = "openvino"
    ORT = "ort"                  # ONNX Runtime
    LITE = "lite"                # Paddle Lite
    PADDLE_TRT = "paddle_trt"    # Paddle Inference with TensorRT subgraphs
    TRT = "trt"                  # TensorRT


# RuntimeOption method selecting each backend
_BACKEND_METHODS = {
    Backend.PADDLE: "use_paddle_backend",
    Backend.OPENVINO: "use_openvino_backend",
    Backend.ORT: "use_ort_backend",
    Backend.LITE: "use_lite_backend",
    Backend.PADDLE_TRT: "use_paddle_infer_backend",
    Backend.TRT: "use_trt_backend",
}


@dataclass(frozen=True)
class DynamicShapeProfile:
    """(min, opt, max) input shapes used by TensorRT to plan kernels."""
    min_shape: Shape
    opt_shape: Shape
    max_shape: Shape
    tensor_name: str = "x"


@dataclass(frozen=True)
class BackendOption:
    """Device/backend configuration for one inference stage."""
    device: Optional[Device] = None
    backend: Optional[Backend] = None
    collect_trt_shape: bool = False
    shape_profile: Optional[DynamicShapeProfile] = None
    trt_cache_file: Optional[str] = None

    @property
    def trt_enabled(self) -> bool:
        return self.backend in (Backend.PADDLE_TRT, Backend.TRT)

    def with_shape_profile(self, profile: DynamicShapeProfile) -> "BackendOption":
        return replace(self, shape_profile=profile)

    def with_trt_cache_file(self, path: Optional[str]) -> "BackendOption":
        return replace(self, trt_cache_file=path)

    def describe(self) -> str:
        device = self.device.value if self.device else "default"
        backend = self.backend.value if self.backend else "default"
        return f"device={device}, backend={backend}"

    def to_runtime_option(self, runtime=None):
        """Build a new ``RuntimeOption`` carrying this configuration.

        Args:
            runtime: Module exposing ``RuntimeOption`` (defaults to FastDeploy)

        Returns:
            A RuntimeOption owned exclusively by the caller
        """
        runtime = runtime if runtime is not None else get_runtime()
        option = runtime.RuntimeOption()

        if self.device is Device.CPU:
            option.use_cpu()
        elif self.device is Device.GPU:
            option.use_gpu()

        if self.backend is not None:
            getattr(option, _BACKEND_METHODS[self.backend])()
        if self.backend is Backend.PADDLE_TRT:
            option.paddle_infer_option.collect_trt_shape = self.collect_trt_shape
            option.paddle_infer_option.enable_trt = True

        if self.shape_profile is not None:
            profile = self.shape_profile
            option.set_trt_input_shape(
                profile.tensor_name,
                list(profile.min_shape),
                list(profile.opt_shape),
                list(profile.max_shape),
            )
        if self.trt_cache_file:
            option.set_trt_cache_file(self.trt_cache_file)

        return option


# Run option flag -> backend configuration
BACKEND_FLAGS = {
    0: BackendOption(Device.CPU, Backend.PADDLE),
    1: BackendOption(Device.CPU, Backend.OPENVINO),
    2: BackendOption(Device.CPU, Backend.ORT),
    3: BackendOption(Device.CPU, Backend.LITE),
    4: BackendOption(Device.GPU, Backend.PADDLE),
    5: BackendOption(Device.GPU, Backend.PADDLE_TRT, collect_trt_shape=True),
    6: BackendOption(Device.GPU, Backend.ORT),
    7: BackendOption(Device.GPU, Backend.TRT),
}


def select_backend(flag: int) -> BackendOption:
    """Map a run option flag (0-7) to its backend configuration.

    Unknown flags fall back to the runtime defaults.
    """
    option = BACKEND_FLAGS.get(flag)
    if option is None:
        log.warning(f"Unknown run option {flag}, using runtime default device and backend")
        return BackendOption()
    log.info(f"Run option {flag}: {option.describe()}")
    return option


def get_runtime():
    """Return the FastDeploy module, failing if it is not installed."""
    if not FASTDEPLOY_AVAILABLE:
        raise RuntimeError("FastDeploy is not installed")
    return fd
