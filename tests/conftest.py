"""Shared fixtures: an in-memory stand-in for the FastDeploy runtime."""

from types import SimpleNamespace

import cv2
import numpy as np
import pytest


class FakeRuntimeOption:
    """Records the configuration calls made on a RuntimeOption."""

    def __init__(self):
        self.device = None
        self.backend = None
        self.paddle_infer_option = SimpleNamespace(collect_trt_shape=False, enable_trt=False)
        self.trt_shapes = {}
        self.trt_cache_file = None

    def use_cpu(self):
        self.device = "cpu"

    def use_gpu(self, device_id=0):
        self.device = "gpu"

    def use_paddle_backend(self):
        self.backend = "paddle"

    def use_openvino_backend(self):
        self.backend = "openvino"

    def use_ort_backend(self):
        self.backend = "ort"

    def use_lite_backend(self):
        self.backend = "lite"

    def use_paddle_infer_backend(self):
        self.backend = "paddle_infer"

    def use_trt_backend(self):
        self.backend = "trt"

    def set_trt_input_shape(self, tensor_name, min_shape, opt_shape=None, max_shape=None):
        self.trt_shapes[tensor_name] = (tuple(min_shape), tuple(opt_shape), tuple(max_shape))

    def set_trt_cache_file(self, path):
        self.trt_cache_file = path


class FakeStageModel:
    def __init__(self, runtime, kind, *files, runtime_option=None):
        self.kind = kind
        self.files = files
        self.runtime_option = runtime_option
        self.preprocessor = SimpleNamespace()
        self.postprocessor = SimpleNamespace()
        self.initialized = kind not in runtime.failing_stages
        runtime.stages[kind] = self


class FakePPOCRv3:
    def __init__(self, runtime, det_model=None, cls_model=None, rec_model=None):
        self.runtime = runtime
        self.det_model = det_model
        self.cls_model = cls_model
        self.rec_model = rec_model
        self.cls_batch_size = None
        self.rec_batch_size = None
        self.predict_calls = 0
        runtime.systems.append(self)

    def predict(self, image):
        self.predict_calls += 1
        if self.runtime.predict_error is not None:
            raise self.runtime.predict_error
        return SimpleNamespace(text=list(self.runtime.texts))


class FakeRuntime:
    """Mimics the parts of ``fastdeploy`` the pipeline builder uses."""

    def __init__(self, texts=("TOTAL", "12.34"), failing_stages=()):
        self.texts = list(texts)
        self.failing_stages = set(failing_stages)
        self.predict_error = None
        self.stages = {}
        self.systems = []

        runtime = self
        self.RuntimeOption = FakeRuntimeOption
        self.vision = SimpleNamespace(
            ocr=SimpleNamespace(
                DBDetector=lambda *a, **kw: FakeStageModel(runtime, "det", *a, **kw),
                Classifier=lambda *a, **kw: FakeStageModel(runtime, "cls", *a, **kw),
                Recognizer=lambda *a, **kw: FakeStageModel(runtime, "rec", *a, **kw),
                PPOCRv3=lambda **kw: FakePPOCRv3(runtime, **kw),
            ),
            vis_ppocr=lambda image, result: image,
        )


@pytest.fixture
def fake_runtime():
    return FakeRuntime()


@pytest.fixture
def png_bytes():
    """A small encoded PNG image."""
    image = np.full((32, 64, 3), 255, dtype=np.uint8)
    ok, encoded = cv2.imencode(".png", image)
    assert ok
    return encoded.tobytes()
