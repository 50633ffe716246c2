"""
Main entry point for the yolocam detection runner.
"""

import sys
import time
import signal
import logging
import argparse

import cv2

from .config import load_config, save_example_config, DEFAULT_CONFIG_PATH
from .errors import ModelLoadError
from .streamer import MJPEGStreamer
from .task import DetectionTask
from .utils import draw_boxes


# Global shutdown flag
shutdown_flag = False


def signal_handler(signum, frame):
    """Handle shutdown signals."""
    global shutdown_flag
    logger.info(f"Received signal {signum}, shutting down...")
    shutdown_flag = True


def setup_logging(level: str = "INFO"):
    """
    Setup logging configuration.

    Args:
        level: Logging level
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


# Configured by setup_logging() once the config is loaded
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='yolocam live object detection')
    parser.add_argument(
        '-c', '--config',
        default=DEFAULT_CONFIG_PATH,
        help='Path to configuration file'
    )
    parser.add_argument(
        '-d', '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--variant',
        choices=['tiny', 'full'],
        help='Model variant (overrides config)'
    )
    parser.add_argument(
        '--source',
        help='Camera index, video file or stream URL (overrides config)'
    )
    parser.add_argument(
        '--threshold',
        type=float,
        help='Confidence threshold (overrides config)'
    )
    parser.add_argument(
        '--no-filter',
        action='store_true',
        help='Disable duplicate box suppression'
    )
    parser.add_argument(
        '--write-config',
        metavar='PATH',
        help='Write an example configuration file and exit'
    )
    return parser.parse_args(argv)


def apply_overrides(config, args: argparse.Namespace) -> None:
    """
    Apply command line options on top of the loaded configuration.

    Raises:
        ValueError: if an option is out of range
    """
    if args.variant:
        config.model.variant = args.variant
    if args.source is not None:
        config.source.device = int(args.source) if args.source.isdigit() else args.source
    if args.threshold is not None:
        config.detection.threshold = args.threshold
    if args.no_filter:
        config.detection.filter_enabled = False


def main(argv=None):
    """Main application loop."""
    global shutdown_flag

    args = parse_args(argv)

    if args.write_config:
        save_example_config(args.write_config)
        print(f"Example configuration written to {args.write_config}")
        return 0

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"ERROR: Failed to load configuration: {e}", file=sys.stderr)
        return 1

    try:
        apply_overrides(config, args)
    except ValueError as e:
        print(f"ERROR: Invalid option: {e}", file=sys.stderr)
        return 1

    log_level = "DEBUG" if args.debug else config.logging.level
    setup_logging(log_level)

    logger.info("=" * 70)
    logger.info("yolocam live object detection")
    logger.info("=" * 70)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    capture = None
    task = DetectionTask(config.detection, config.model)
    streamer = None

    try:
        task.start(config.model.variant)
        logger.info("Loading pretrained model (first run downloads weights)...")
        try:
            task.wait_ready()
        except ModelLoadError as e:
            logger.error(f"Failed to load model: {e}")
            return 1

        if config.stream.enabled:
            streamer = MJPEGStreamer(config.stream, task)
            streamer.start()
            logger.info(f"Stream available at http://<your-ip>:{config.stream.port}/")

        capture = open_source(config.source)
        if capture is None:
            return 1

        run_main_loop(capture, task, streamer)

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    finally:
        logger.info("Cleaning up...")

        if capture is not None:
            capture.release()

        task.close()
        task.join(timeout=5.0)

        if streamer is not None:
            streamer.stop()

        logger.info("Shutdown complete")

    return 0


def open_source(source_config):
    """Open the frame source with OpenCV. Returns None on failure."""
    logger.info(f"Opening frame source: {source_config.device}")
    capture = cv2.VideoCapture(source_config.device)
    if not capture.isOpened():
        logger.error(f"Failed to open {source_config.device}")
        return None

    capture.set(cv2.CAP_PROP_FRAME_WIDTH, source_config.width)
    capture.set(cv2.CAP_PROP_FRAME_HEIGHT, source_config.height)
    return capture


def run_main_loop(capture, task: DetectionTask, streamer):
    """
    Feed frames to the task and render its latest boxes.

    Args:
        capture: Opened cv2.VideoCapture
        task: Running detection task
        streamer: Streamer instance, or None
    """
    global shutdown_flag

    last_stats_log_time = time.time()

    while not shutdown_flag:
        ok, frame = capture.read()

        if not ok or frame is None:
            logger.warning("Frame source ended or failed")
            task.set_frame(None)
            break

        task.set_frame(frame)

        if streamer is not None:
            streamer.update_frame(draw_boxes(frame, task.latest_boxes))

        # Log statistics every 30 seconds
        if time.time() - last_stats_log_time >= 30.0:
            stats = task.stats()
            logger.info(
                f"Stats: FPS={stats['fps']:.1f}, "
                f"Inference={stats['inference_time'] * 1000:.1f}ms, "
                f"Detections={stats['num_detections']}, Errors={stats['errors']}"
            )
            last_stats_log_time = time.time()


if __name__ == '__main__':
    sys.exit(main())
