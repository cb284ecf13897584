###gui.py####
from __future__ import annotations

import sys
from typing import Optional

from PIL import Image
from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QImage, QPixmap, QPalette, QColor
from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QPushButton, QLabel, QFileDialog,
)

from config import MorphConfig
from main import MorphEngine, MorphStatus


# --------------------------- Main GUI ---------------------------

class MorphWindow(QMainWindow):
    def __init__(self, config: Optional[MorphConfig] = None):
        super().__init__()
        self.config = config or MorphConfig()
        self.setWindowTitle("pixelmorph")
        self.resize(720, 820)

        self.engine = MorphEngine(self.config)
        self.preview_label: Optional[QLabel] = None

        self.init_ui()

        # Per-frame callback; only armed while an animation exists
        self.timer = QTimer(self)
        self.timer.setInterval(self.config.frame_interval_ms)
        self.timer.timeout.connect(self._on_timer_tick)

        self.engine.load_target()
        self._refresh_controls()
        self.update_preview(self.engine.frame())

    def init_ui(self):
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(10)

        title = QLabel("pixelmorph")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet("font-size: 22px; font-weight: bold;")
        layout.addWidget(title)

        blurb = QLabel(
            "Pick an image. Its pixels drift, sorted by brightness, until they "
            "form the target portrait, wobbling all the way."
        )
        blurb.setWordWrap(True)
        blurb.setAlignment(Qt.AlignmentFlag.AlignCenter)
        blurb.setStyleSheet("color: #999; font-size: 11px;")
        layout.addWidget(blurb)

        controls = QHBoxLayout()
        self.open_button = QPushButton("Choose image…")
        self.open_button.setStyleSheet("height: 28px; background-color: #333; color: white; border-radius: 5px;")
        self.open_button.clicked.connect(self.choose_source)
        controls.addWidget(self.open_button)

        self.replay_button = QPushButton("Play again")
        self.replay_button.setStyleSheet("height: 28px; background-color: white; color: black; border-radius: 5px;")
        self.replay_button.clicked.connect(self.replay)
        self.replay_button.setVisible(False)
        controls.addWidget(self.replay_button)
        layout.addLayout(controls)

        self.status_label = QLabel("")
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.status_label.setStyleSheet("font-size: 11px; color: #bbb;")
        layout.addWidget(self.status_label)

        w, h = self.config.canvas_size
        self.preview_label = QLabel()
        self.preview_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.preview_label.setStyleSheet("background: black; border: 1px solid #444; border-radius: 5px;")
        self.preview_label.setMinimumSize(min(w, 600), min(h, 600))
        layout.addWidget(self.preview_label, 1)

    # -- actions --
    def choose_source(self):
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Choose Image", "", "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp *.ppm);;All Files (*)"
        )
        if not file_path:
            return  # User cancelled
        self.engine.load_source(file_path)
        self._refresh_controls()
        if not self.engine.is_animating:
            self.update_preview(self.engine.frame())

    def replay(self):
        if self.engine.replay():
            self._refresh_controls()

    # -- frame loop --
    def _on_timer_tick(self):
        if not self.engine.is_animating:
            self.timer.stop()
            return
        self.update_preview(self.engine.frame())
        self._refresh_controls()

    def _refresh_controls(self):
        status = self.engine.status
        self.status_label.setText(status.text)
        self.replay_button.setVisible(self.engine.can_replay)
        if status is MorphStatus.TARGET_FAILED:
            self.status_label.setStyleSheet("font-size: 11px; color: #e66;")
        else:
            self.status_label.setStyleSheet("font-size: 11px; color: #bbb;")

        if self.engine.is_animating and not self.timer.isActive():
            self.timer.start()

    def update_preview(self, pil_img: Image.Image):
        # Surface missing or not laid out yet: skip, the next tick retries
        label = self.preview_label
        if label is None or label.width() <= 0 or label.height() <= 0:
            return
        pix = self._to_pixmap(pil_img)
        if pix.isNull():
            print("[gui] Could not build a pixmap for this frame; skipping.", file=sys.stderr)
            return
        scaled = pix.scaled(label.size(), Qt.AspectRatioMode.KeepAspectRatio, Qt.TransformationMode.FastTransformation)
        label.setPixmap(scaled)

    @staticmethod
    def _to_pixmap(pil_img: Image.Image) -> QPixmap:
        """Helper to convert PIL Image to QPixmap."""
        if pil_img.mode != "RGBA":
            pil_img = pil_img.convert("RGBA")
        data = pil_img.tobytes("raw", "RGBA")
        qim = QImage(data, pil_img.width, pil_img.height, QImage.Format.Format_RGBA8888)
        # copy() detaches from the Python buffer before it is freed
        return QPixmap.fromImage(qim.copy())

    def closeEvent(self, event):
        # Deregister the frame callback so nothing runs after disposal
        self.timer.stop()
        self.engine.stop()
        super().closeEvent(event)


def _dark_palette() -> QPalette:
    palette = QPalette()
    palette.setColor(QPalette.ColorGroup.All, QPalette.ColorRole.Window, QColor(20, 20, 20))
    palette.setColor(QPalette.ColorGroup.All, QPalette.ColorRole.WindowText, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorGroup.All, QPalette.ColorRole.Base, QColor(25, 25, 25))
    palette.setColor(QPalette.ColorGroup.All, QPalette.ColorRole.AlternateBase, QColor(53, 53, 53))
    palette.setColor(QPalette.ColorGroup.All, QPalette.ColorRole.Text, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorGroup.All, QPalette.ColorRole.Button, QColor(53, 53, 53))
    palette.setColor(QPalette.ColorGroup.All, QPalette.ColorRole.ButtonText, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorGroup.All, QPalette.ColorRole.Highlight, QColor(42, 130, 218))
    palette.setColor(QPalette.ColorGroup.All, QPalette.ColorRole.HighlightedText, Qt.GlobalColor.black)
    return palette


def run_gui(config: Optional[MorphConfig] = None) -> int:
    app = QApplication.instance() or QApplication(sys.argv)
    app.setStyle("Fusion")
    app.setPalette(_dark_palette())

    window = MorphWindow(config)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(run_gui(MorphConfig.from_env()))
