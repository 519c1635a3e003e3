"""Stage model artifacts and TensorRT shape profiles."""

import os
from dataclasses import dataclass
from typing import Optional

from runtime.backend import DynamicShapeProfile

MODEL_FILENAME = "inference.pdmodel"
PARAMS_FILENAME = "inference.pdiparams"


@dataclass(frozen=True)
class StageArtifact:
    """Graph and weights files of one exported Paddle model."""
    model_dir: str
    model_file: str
    params_file: str
    label_file: Optional[str] = None

    @classmethod
    def from_dir(cls, model_dir: str, label_file: Optional[str] = None) -> "StageArtifact":
        return cls(
            model_dir=model_dir,
            model_file=os.path.join(model_dir, MODEL_FILENAME),
            params_file=os.path.join(model_dir, PARAMS_FILENAME),
            label_file=label_file,
        )

    def trt_cache_file(self, prefix: str) -> str:
        return os.path.join(self.model_dir, f"{prefix}_trt_cache.trt")


# Detection input side lengths should be multiples of 32.
def detector_profile() -> DynamicShapeProfile:
    return DynamicShapeProfile(
        min_shape=(1, 3, 64, 64),
        opt_shape=(1, 3, 640, 640),
        max_shape=(1, 3, 960, 960),
    )


def classifier_profile(batch_size: int) -> DynamicShapeProfile:
    return DynamicShapeProfile(
        min_shape=(1, 3, 48, 10),
        opt_shape=(batch_size, 3, 48, 320),
        max_shape=(batch_size, 3, 48, 1024),
    )


def recognizer_profile(batch_size: int) -> DynamicShapeProfile:
    return DynamicShapeProfile(
        min_shape=(1, 3, 48, 10),
        opt_shape=(batch_size, 3, 48, 320),
        max_shape=(batch_size, 3, 48, 2304),
    )
