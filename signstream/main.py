"""
Webcam demo for the gesture pipeline.
"""
import argparse
import asyncio
import logging
import os
import sys
import time
from typing import Optional

import cv2
from dotenv import load_dotenv

from .classifier import KerasSequenceClassifier
from .config import load_config
from .detector import BoundedDetector
from .errors import ClassifierError, DetectorError
from .holistic import HolisticDetector
from .pipeline import GesturePipeline
from .session import RecognitionSession
from .transcript import SignTranscript

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()


class SignRecognitionApp:
    """Main application class for sign recognition from the webcam."""

    def __init__(self, config_path: Optional[str] = None):
        """Load configuration and models, then open the camera."""
        self.config = load_config(config_path)
        logging.basicConfig(
            level=getattr(logging, self.config.logging.level.upper(), logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )

        self.holistic = HolisticDetector.from_config(self.config.detector)
        self.detector = BoundedDetector(self.holistic, self.config.detector.timeout_ms)
        self.detector.initialize()

        self.classifier = KerasSequenceClassifier()
        self.classifier.initialize(self.config.classifier.model_path)

        self.pipeline = GesturePipeline.from_config(self.config, self.classifier)
        self.session = RecognitionSession(
            self.detector, self.pipeline,
            facing=self.config.camera.facing,
            mirror_hands=self.config.features.mirror_hands
        )
        self.transcript = SignTranscript(
            clear_pipeline=self.pipeline.clear_buffer,
            pause_after_commit_ms=self.config.transcript.pause_after_commit_ms
        )

        self.cap = self._open_camera()

    def _open_camera(self) -> cv2.VideoCapture:
        cap = cv2.VideoCapture(self.config.camera.index)
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        if not cap.isOpened():
            raise RuntimeError(f"Failed to open camera {self.config.camera.index}")
        return cap

    async def run(self):
        """Run the main application loop."""
        logger.info(f"Starting {self.config.display.window_name}")
        print("Keys: [space] commit word, [x] discard word, [c] switch camera, [q] quit")

        while True:
            ret, frame = self.cap.read()
            if not ret:
                logger.error("Failed to read frame from camera")
                break

            try:
                event = self.session.tick(frame, time.monotonic())
            except ClassifierError as e:
                logger.error(f"Classifier failure: {e}")
                event = None

            if event is not None:
                await self.transcript.on_gesture(event)

            frame = self.holistic.annotate(
                frame,
                flip=self.session.facing == "user",
                draw=self.config.display.show_landmarks and self.session.last_detection is not None
            )

            status = f"Sign: {self.transcript.current_sign or '-'}  Word: {self.transcript.current_word}"
            cv2.putText(frame, status, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
            if self.transcript.history:
                cv2.putText(frame, f"Last: {self.transcript.history[-1].text}", (10, 60),
                            cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 0), 2)

            cv2.imshow(self.config.display.window_name, frame)

            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            elif key == ord(' '):
                self.transcript.commit()
            elif key == ord('x'):
                self.transcript.discard()
            elif key == ord('c'):
                self.cap.release()
                self.session.switch_camera()
                self.cap = self._open_camera()

        self.close()

    def close(self):
        """Release camera and models."""
        if self.cap.isOpened():
            self.cap.release()
        self.session.close()
        self.holistic.close()
        cv2.destroyAllWindows()


async def main():
    """Entry point for the application."""
    parser = argparse.ArgumentParser(description="Recognize signs from the webcam")
    parser.add_argument("--config", default=os.getenv("SIGNSTREAM_CONFIG"),
                        help="Path to a YAML config file (default: $SIGNSTREAM_CONFIG or packaged defaults)")
    args = parser.parse_args()

    app = None
    try:
        app = SignRecognitionApp(config_path=args.config)
        await app.run()
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")
        if app is not None:
            app.close()
    except (ClassifierError, DetectorError) as e:
        print(f"❌ Could not load models: {e}")
        sys.exit(1)


def cli():
    asyncio.run(main())


if __name__ == "__main__":
    cli()
