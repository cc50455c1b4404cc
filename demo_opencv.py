#!/usr/bin/env python3
"""
PostureX Scoring - Standalone OpenCV Demo
Runs the webcam through the pose detector and the background scoring worker.

Usage: python demo_opencv.py

Controls:
    q - Quit
    r - Reset session
    z - Snooze break reminders
    t - Toggle scoring mode (frame / temporal)
"""

import argparse
import logging
import threading
import time
from typing import Optional

import cv2

from Scoring_Engine.detectors.pose_detector import PoseDetector
from Scoring_Engine.utils.logging_config import setup_logging
from Scoring_Engine.worker.messages import FrameResult
from Scoring_Engine.worker.pipeline import FramePipeline, ScoringMode
from Scoring_Engine.worker.scoring_worker import ScoringWorker

logger = logging.getLogger("demo_opencv")

WINDOW_NAME = "PostureX - Posture Scoring"
RISK_COLORS_BGR = {
    'LOW': (153, 211, 52), 'MODERATE': (21, 204, 250), 'HIGH': (60, 146, 251),
    'SEVERE': (94, 63, 244), 'CRITICAL': (60, 18, 190),
}


def parse_args():
    parser = argparse.ArgumentParser(description="PostureX scoring demo")
    parser.add_argument("--camera", "-c", type=int, default=0, help="Camera ID")
    parser.add_argument("--width", "-w", type=int, default=640, help="Width")
    parser.add_argument("--height", "-H", type=int, default=480, help="Height")
    parser.add_argument("--mode", choices=[m.value for m in ScoringMode], default=ScoringMode.FRAME.value,
                        help="Scoring mode")
    parser.add_argument("--hold-last-score", action="store_true",
                        help="Keep feeding fatigue tracking while landmarks are missing")
    parser.add_argument("--log-level", default="INFO", help="Log level")
    return parser.parse_args()


class ScoringDemo:
    def __init__(self, camera_id=0, width=640, height=480, mode=ScoringMode.FRAME, hold_last_score=False):
        logger.info("Initializing camera %d (%dx%d)", camera_id, width, height)
        self.cap = cv2.VideoCapture(camera_id)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        self.pose_detector = PoseDetector()
        self.mode = mode
        pipeline = FramePipeline(mode=mode, hold_last_score=hold_last_score, session_id="demo")
        self.worker = ScoringWorker(pipeline, on_result=self._on_result)

        self._latest_lock = threading.Lock()
        self._latest: Optional[FrameResult] = None
        self._latest_alert = None
        self._latest_break = None

    def _on_result(self, result: FrameResult):
        with self._latest_lock:
            self._latest = result
            if result.alert is not None:
                self._latest_alert = result.alert
                logger.info("Alert: %s", result.alert.message)
            if result.break_recommendation is not None:
                self._latest_break = result.break_recommendation
                logger.info("Break: %s", result.break_recommendation.message)

    def run(self):
        cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
        self.worker.start()
        try:
            while True:
                ret, frame = self.cap.read()
                if not ret:
                    break

                message = self.pose_detector.detect(frame, time.time() * 1000)
                if message is not None:
                    self.worker.submit(message)

                cv2.imshow(WINDOW_NAME, self.draw(frame, pose_found=message is not None))

                key = cv2.waitKey(1) & 0xFF
                if key == ord('q'):
                    break
                elif key == ord('r'):
                    self.reset()
                elif key == ord('z'):
                    self.worker.snooze_breaks(time.time() * 1000)
                    logger.info("Break reminders snoozed")
                elif key == ord('t'):
                    self.toggle_mode()
        finally:
            self.cleanup()

    def draw(self, frame, pose_found: bool):
        output = frame.copy()
        if not pose_found:
            cv2.putText(output, "No pose detected - face the camera", (50, output.shape[0] // 2),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 255), 2)

        with self._latest_lock:
            result, alert, recommendation = self._latest, self._latest_alert, self._latest_break
        if result is None:
            return output

        color = RISK_COLORS_BGR.get(result.risk_level.value, (255, 255, 255))
        lines = [
            (f"Score {result.score:.1f}  Risk {result.risk_level.value}", color),
            (f"Align {result.alignment:.0f}  Sym {result.symmetry:.0f}  Stab {result.stability:.0f}", (255, 255, 255)),
        ]
        if result.fatigue_state is not None:
            lines.append((f"Fatigue {result.fatigue_state.fatigue_level.value} "
                          f"(avg {result.fatigue_state.avg_score})", (255, 255, 255)))
        if result.feedback is not None:
            lines.append((f"{result.feedback.message}: {result.feedback.suggestion}", (255, 255, 255)))
        if alert is not None:
            lines.append((f"Alert: {alert.message}", (0, 165, 255)))
        if recommendation is not None:
            lines.append((f"Break: {recommendation.message}", (0, 255, 255)))

        for i, (text, line_color) in enumerate(lines):
            cv2.putText(output, text, (10, 30 + i * 26), cv2.FONT_HERSHEY_SIMPLEX, 0.6, line_color, 2)
        return output

    def toggle_mode(self):
        self.mode = ScoringMode.TEMPORAL if self.mode is ScoringMode.FRAME else ScoringMode.FRAME
        self.reset()
        self.worker.set_mode(self.mode)

    def reset(self):
        logger.info("Resetting session")
        self.worker.reset()
        with self._latest_lock:
            self._latest = self._latest_alert = self._latest_break = None

    def cleanup(self):
        self.worker.stop()
        self.cap.release()
        self.pose_detector.close()
        cv2.destroyAllWindows()


def main():
    args = parse_args()
    setup_logging(args.log_level)
    demo = ScoringDemo(args.camera, args.width, args.height, ScoringMode(args.mode), args.hold_last_score)
    demo.run()


if __name__ == "__main__":
    main()
