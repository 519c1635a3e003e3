"""PP-OCR pipeline builder.

Builds the detector, classifier and recognizer pipeline once at startup:
1. Resolve model artifacts for each stage
2. Derive a per-stage backend option carrying that stage's TRT shape profile
3. Load the stage models and apply pre/post processing parameters
4. Compose the stages into a PPOCRv3 pipeline and set its batch sizes

The returned ``OCRPipeline`` is never modified afterwards and is shared by
all request workers.
"""

from dataclasses import dataclass
from typing import Any, Optional

from core.config import settings
from core.logging import log
from runtime.backend import BackendOption, get_runtime
from ocr.artifacts import (
    StageArtifact,
    detector_profile,
    classifier_profile,
    recognizer_profile,
)


class PipelineBuildError(RuntimeError):
    """The OCR pipeline could not be built."""


def _check_batch_size(name: str, value: int):
    # -1 batches all detected boxes at once; positive values cap the batch
    if value != -1 and value < 1:
        raise ValueError(f"{name} must be -1 or a positive integer, got {value}")


@dataclass(frozen=True)
class PipelineParameters:
    """Pre/post processing and batching parameters of the three stages."""
    det_max_side_len: int = 960
    det_db_thresh: float = 0.3
    det_db_box_thresh: float = 0.6
    det_db_unclip_ratio: float = 1.5
    det_db_score_mode: str = "slow"
    det_use_dilation: bool = False
    cls_thresh: float = 0.9
    cls_batch_size: int = 1
    rec_batch_size: int = 6
    trt_profile_max_batch: int = 32

    def __post_init__(self):
        _check_batch_size("cls_batch_size", self.cls_batch_size)
        _check_batch_size("rec_batch_size", self.rec_batch_size)
        if self.trt_profile_max_batch < 1:
            raise ValueError(f"trt_profile_max_batch must be positive, got {self.trt_profile_max_batch}")

    @classmethod
    def from_settings(cls, config=settings) -> "PipelineParameters":
        return cls(
            det_max_side_len=config.DET_MAX_SIDE_LEN,
            det_db_thresh=config.DET_DB_THRESH,
            det_db_box_thresh=config.DET_DB_BOX_THRESH,
            det_db_unclip_ratio=config.DET_DB_UNCLIP_RATIO,
            det_db_score_mode=config.DET_DB_SCORE_MODE,
            det_use_dilation=config.DET_USE_DILATION,
            cls_thresh=config.CLS_THRESH,
            cls_batch_size=config.CLS_BATCH_SIZE,
            rec_batch_size=config.REC_BATCH_SIZE,
            trt_profile_max_batch=config.TRT_PROFILE_MAX_BATCH,
        )

    def profile_batch(self, batch_size: int) -> int:
        """Batch dimension of a TRT shape profile for the given batch size."""
        return batch_size if batch_size > 0 else self.trt_profile_max_batch


class OCRPipeline:
    """Composed PP-OCR pipeline and the stage models it was built from."""

    def __init__(self,
                 system: Any,
                 detector: Any,
                 classifier: Optional[Any],
                 recognizer: Any,
                 cls_batch_size: int,
                 rec_batch_size: int,
                 backend: BackendOption):
        self.system = system
        self.detector = detector
        self.classifier = classifier
        self.recognizer = recognizer
        self.cls_batch_size = cls_batch_size
        self.rec_batch_size = rec_batch_size
        self.backend = backend

    @property
    def has_classifier(self) -> bool:
        return self.classifier is not None

    @property
    def initialized(self) -> bool:
        stages = [self.detector, self.recognizer]
        if self.classifier is not None:
            stages.append(self.classifier)
        return self.system is not None and all(bool(stage.initialized) for stage in stages)

    def predict(self, image):
        """Run the full pipeline on a BGR image and return the runtime's OCR result."""
        return self.system.predict(image)


def _load_stage(name: str, factory, *args, **kwargs):
    """Instantiate a stage model and require it to be initialized."""
    try:
        model = factory(*args, **kwargs)
    except Exception as e:
        log.error(f"Failed to load {name} model: {str(e)}")
        raise PipelineBuildError(f"Failed to load {name} model: {str(e)}") from e

    if not model.initialized:
        log.error(f"{name} model is not initialized")
        raise PipelineBuildError(f"{name} model is not initialized")

    log.info(f"✅ {name} model initialized")
    return model


def build_pipeline(det_model_dir: str,
                   cls_model_dir: Optional[str],
                   rec_model_dir: str,
                   rec_label_file: str,
                   option: BackendOption,
                   params: Optional[PipelineParameters] = None,
                   use_trt_cache: bool = False,
                   runtime=None) -> OCRPipeline:
    """Build the PP-OCR pipeline.

    Args:
        det_model_dir: Detector model directory
        cls_model_dir: Classifier model directory, or None for a two-stage pipeline
        rec_model_dir: Recognizer model directory
        rec_label_file: Recognizer label (character dictionary) file
        option: Backend configuration shared by all stages
        params: Processing parameters (defaults to ``PipelineParameters()``)
        use_trt_cache: Persist TensorRT engines next to the models
        runtime: Inference runtime module (defaults to FastDeploy)

    Returns:
        OCRPipeline: Built pipeline; check ``initialized`` before serving

    Raises:
        PipelineBuildError: If the runtime is missing or a stage fails to load
    """
    params = params if params is not None else PipelineParameters()
    if runtime is None:
        try:
            runtime = get_runtime()
        except RuntimeError as e:
            log.error(f"Cannot build OCR pipeline: {str(e)}")
            raise PipelineBuildError(str(e)) from e

    log.info(f"Building PP-OCR pipeline ({option.describe()}, classifier={'on' if cls_model_dir else 'off'})")

    # Step 1: Resolve artifacts
    det_artifact = StageArtifact.from_dir(det_model_dir)
    cls_artifact = StageArtifact.from_dir(cls_model_dir) if cls_model_dir else None
    rec_artifact = StageArtifact.from_dir(rec_model_dir, label_file=rec_label_file)

    # Step 2: Per-stage options; each stage gets only its own shape profile
    det_option = option.with_shape_profile(detector_profile())
    rec_option = option.with_shape_profile(
        recognizer_profile(params.profile_batch(params.rec_batch_size))
    )
    cls_option = None
    if cls_artifact is not None:
        cls_option = option.with_shape_profile(
            classifier_profile(params.profile_batch(params.cls_batch_size))
        )

    if use_trt_cache:
        det_option = det_option.with_trt_cache_file(det_artifact.trt_cache_file("det"))
        rec_option = rec_option.with_trt_cache_file(rec_artifact.trt_cache_file("rec"))
        if cls_artifact is not None:
            cls_option = cls_option.with_trt_cache_file(cls_artifact.trt_cache_file("cls"))

    # Step 3: Load stage models
    ocr_models = runtime.vision.ocr
    det_model = _load_stage(
        "Detector", ocr_models.DBDetector,
        det_artifact.model_file, det_artifact.params_file,
        runtime_option=det_option.to_runtime_option(runtime),
    )
    cls_model = None
    if cls_artifact is not None:
        cls_model = _load_stage(
            "Classifier", ocr_models.Classifier,
            cls_artifact.model_file, cls_artifact.params_file,
            runtime_option=cls_option.to_runtime_option(runtime),
        )
    rec_model = _load_stage(
        "Recognizer", ocr_models.Recognizer,
        rec_artifact.model_file, rec_artifact.params_file, rec_artifact.label_file,
        runtime_option=rec_option.to_runtime_option(runtime),
    )

    # Step 4: Pre/post processing parameters
    det_model.preprocessor.max_side_len = params.det_max_side_len
    det_model.postprocessor.det_db_thresh = params.det_db_thresh
    det_model.postprocessor.det_db_box_thresh = params.det_db_box_thresh
    det_model.postprocessor.det_db_unclip_ratio = params.det_db_unclip_ratio
    det_model.postprocessor.det_db_score_mode = params.det_db_score_mode
    det_model.postprocessor.use_dilation = params.det_use_dilation
    if cls_model is not None:
        cls_model.postprocessor.cls_thresh = params.cls_thresh

    # Step 5: Compose; without a classifier boxes go straight to the recognizer
    system = runtime.vision.ocr.PPOCRv3(
        det_model=det_model, cls_model=cls_model, rec_model=rec_model
    )
    if cls_model is not None:
        system.cls_batch_size = params.cls_batch_size
    system.rec_batch_size = params.rec_batch_size

    pipeline = OCRPipeline(
        system=system,
        detector=det_model,
        classifier=cls_model,
        recognizer=rec_model,
        cls_batch_size=params.cls_batch_size,
        rec_batch_size=params.rec_batch_size,
        backend=option,
    )

    if not pipeline.initialized:
        log.error("Failed to initialize PP-OCR pipeline")
        return pipeline

    log.info("✅ PP-OCR pipeline initialized")
    log.info(f"   Batch sizes: cls={params.cls_batch_size}, rec={params.rec_batch_size}")
    return pipeline
