"""Entry point for the PP-OCR detect service.

Usage:
    python main.py <det_model_dir> <cls_model_dir> <rec_model_dir> <rec_label_file> [<image>] <run_option>

By default the pipeline is served over HTTP. With ``--once`` the image
argument is recognized a single time and the result printed instead.
"""

import argparse
import sys
from typing import List, Optional

import cv2

from core.config import settings
from core.logging import log
from ingestion.decoder import load_image
from ocr.pipeline import OCRPipeline, PipelineBuildError, PipelineParameters, build_pipeline
from ocr.service import OCRService
from runtime.backend import get_runtime, select_backend

USAGE = (
    "Usage: python main.py path/to/det_model path/to/cls_model "
    "path/to/rec_model path/to/rec_label_file [path/to/image] run_option, "
    "e.g python main.py ./ch_PP-OCRv3_det_infer "
    "./ch_ppocr_mobile_v2.0_cls_infer ./ch_PP-OCRv3_rec_infer "
    "./ppocr_keys_v1.txt ./12.jpg 0\n"
    "The data type of run_option is int, e.g. 0: run with paddle "
    "inference on cpu;"
)

VIS_RESULT_PATH = "vis_result.jpg"


class UsageError(Exception):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports errors with the usage banner on stdout."""

    def error(self, message):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(description="PP-OCR detect service", add_help=False)
    parser.add_argument("det_model_dir")
    parser.add_argument("cls_model_dir")
    parser.add_argument("rec_model_dir")
    parser.add_argument("rec_label_file")
    parser.add_argument("rest", nargs="+", metavar="[image] run_option")
    parser.add_argument("--once", action="store_true",
                        help="Recognize the image argument once instead of serving")
    parser.add_argument("--no-cls", action="store_true",
                        help="Skip the orientation classifier")
    parser.add_argument("--trt-cache", action="store_true",
                        help="Save TensorRT engines next to the models")
    return parser


def parse_args(argv: List[str]) -> argparse.Namespace:
    """Parse command line arguments.

    Raises:
        UsageError: On a wrong number of positionals or a non-integer run option
    """
    args = build_parser().parse_args(argv)
    if len(args.rest) > 2:
        raise UsageError("too many positional arguments")

    args.image = args.rest[0] if len(args.rest) == 2 else None
    try:
        args.flag = int(args.rest[-1])
    except ValueError:
        raise UsageError(f"run_option must be an integer, got {args.rest[-1]!r}")

    if args.once and args.image is None:
        raise UsageError("--once requires an image argument")
    return args


def run_once(pipeline: OCRPipeline, image_source: str) -> int:
    """Recognize a single image, print the result and save a visualization."""
    image = load_image(image_source, timeout=settings.FETCH_TIMEOUT_SECONDS)
    if image is None:
        return 1

    try:
        result = pipeline.predict(image.copy())
    except Exception as e:
        log.error(f"Failed to predict: {str(e)}")
        return 1

    print(result)

    vis_image = get_runtime().vision.vis_ppocr(image, result)
    cv2.imwrite(VIS_RESULT_PATH, vis_image)
    print(f"Visualized result saved in ./{VIS_RESULT_PATH}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    try:
        args = parse_args(argv)
    except UsageError as e:
        log.debug(f"Invalid arguments: {e}")
        print(USAGE)
        return -1

    option = select_backend(args.flag)
    try:
        pipeline = build_pipeline(
            args.det_model_dir,
            None if args.no_cls else args.cls_model_dir,
            args.rec_model_dir,
            args.rec_label_file,
            option,
            params=PipelineParameters.from_settings(settings),
            use_trt_cache=args.trt_cache,
        )
    except (PipelineBuildError, ValueError) as e:
        log.error(f"Failed to build PP-OCR pipeline: {str(e)}")
        return 1

    if args.once:
        return run_once(pipeline, args.image)

    # Imported late so one-shot runs do not need the web stack
    from api.server import serve
    serve(OCRService(pipeline))
    return 0


if __name__ == "__main__":
    sys.exit(main())
