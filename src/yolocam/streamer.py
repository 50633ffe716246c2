"""
Flask-based MJPEG streaming server with detection and control endpoints.
"""

import cv2
import time
import logging
import threading
import numpy as np
from typing import Optional
from flask import Flask, Response, jsonify, request
from .config import StreamConfig
from .task import DetectionTask


logger = logging.getLogger(__name__)


class MJPEGStreamer:
    """
    MJPEG streaming server using Flask.

    Serves the annotated frames pushed with update_frame() and exposes the
    task's latest boxes, statistics and threshold/filter controls as JSON.
    """

    def __init__(self, config: StreamConfig, task: DetectionTask):
        """
        Initialize MJPEG streamer.

        Args:
            config: Stream configuration
            task: Detection task whose results and controls are served
        """
        self.config = config
        self.task = task
        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)

        # Thread-safe frame buffer
        self.current_frame: Optional[np.ndarray] = None
        self.frame_lock = threading.Lock()
        self.start_time = time.time()

        self._setup_routes()

        # Server thread
        self.server_thread: Optional[threading.Thread] = None
        self.is_running = False

    def _setup_routes(self):
        """Setup Flask routes."""

        @self.app.route('/')
        def index():
            """Serve web UI."""
            return self._get_minimal_ui()

        @self.app.route('/stream')
        def stream():
            """MJPEG stream endpoint."""
            return Response(
                self._generate_frames(),
                mimetype='multipart/x-mixed-replace; boundary=frame'
            )

        @self.app.route('/health')
        def health():
            """Health check endpoint."""
            return jsonify({
                'status': self.task.state.value,
                'uptime': int(time.time() - self.start_time),
            })

        @self.app.route('/api/stats')
        def stats():
            """Statistics endpoint."""
            stats = self.task.stats()
            return jsonify({
                'state': stats['state'],
                'fps': round(stats['fps'], 2),
                'inference_time': round(stats['inference_time'], 3),
                'num_detections': stats['num_detections'],
                'cycles': stats['cycles'],
                'errors': stats['errors'],
                'uptime': int(time.time() - self.start_time),
            })

        @self.app.route('/api/detections')
        def detections():
            """Latest published boxes; null when no frame is available."""
            result = self.task.latest_result
            if result is None or result.boxes is None:
                return jsonify({'version': None if result is None else result.version,
                                'boxes': None})
            return jsonify({
                'version': result.version,
                'timestamp': result.timestamp,
                'boxes': [box.to_dict() for box in result.boxes],
            })

        @self.app.route('/api/controls', methods=['GET', 'POST'])
        def controls():
            """Read or update threshold and filter flag."""
            if request.method == 'POST':
                data = request.get_json(silent=True) or {}
                try:
                    if 'threshold' in data:
                        self.task.set_threshold(data['threshold'])
                    if 'filter_enabled' in data:
                        self.task.set_filter_enabled(bool(data['filter_enabled']))
                except (TypeError, ValueError) as e:
                    return jsonify({'error': str(e)}), 400

            return jsonify({
                'threshold': self.task.threshold,
                'filter_enabled': self.task.filter_enabled,
            })

        @self.app.route('/api/classes')
        def classes():
            """Class labels of the loaded model with their colors."""
            palette = self.task.palette
            return jsonify(palette.as_dict() if palette is not None else {})

    def _get_minimal_ui(self) -> str:
        """Get minimal fallback UI."""
        return """
        <!DOCTYPE html>
        <html>
        <head><title>yolocam</title></head>
        <body>
            <h1>yolocam</h1>
            <img src="/stream" style="max-width: 100%;">
        </body>
        </html>
        """

    def _generate_frames(self):
        """
        Generator for MJPEG frames.

        Yields:
            MJPEG frame data
        """
        while self.is_running:
            with self.frame_lock:
                frame = self.current_frame

            if frame is not None:
                ret, buffer = cv2.imencode(
                    '.jpg',
                    frame,
                    [cv2.IMWRITE_JPEG_QUALITY, self.config.jpeg_quality]
                )

                if ret:
                    frame_bytes = buffer.tobytes()
                    yield (b'--frame\r\n'
                           b'Content-Type: image/jpeg\r\n\r\n' + frame_bytes + b'\r\n')

            # Small delay to prevent busy waiting
            time.sleep(0.03)

    def update_frame(self, frame: np.ndarray):
        """
        Update the current frame to be streamed.

        Args:
            frame: New annotated frame (BGR format)
        """
        with self.frame_lock:
            self.current_frame = frame.copy()

    def start(self):
        """Start the streaming server in a separate thread."""
        if self.is_running:
            logger.warning("Streamer already running")
            return

        logger.info(f"Starting MJPEG server on {self.config.host}:{self.config.port}")

        def run_server():
            self.app.run(
                host=self.config.host,
                port=self.config.port,
                threaded=True,
                debug=False,
                use_reloader=False
            )

        self.is_running = True
        self.server_thread = threading.Thread(target=run_server, daemon=True)
        self.server_thread.start()

        logger.info("MJPEG server started")

    def stop(self):
        """Stop the streaming server."""
        self.is_running = False
        logger.info("MJPEG server stopped")
