"""Watermark settings panel."""

import os

from PyQt5.QtWidgets import (
    QGroupBox, QVBoxLayout, QFormLayout, QHBoxLayout, QCheckBox, QComboBox,
    QSpinBox, QSlider, QLabel, QPushButton, QColorDialog, QFileDialog, QLineEdit,
)
from PyQt5.QtGui import QColor
from PyQt5.QtCore import Qt, pyqtSignal

from overlay_editor import geometry
from overlay_editor.models.watermark import TYPE_IMAGE, TYPE_TEXT

POSITION_LABELS = [
    ("Center", geometry.POSITION_CENTER),
    ("Top Left", geometry.POSITION_TOP_LEFT),
    ("Top Right", geometry.POSITION_TOP_RIGHT),
    ("Bottom Left", geometry.POSITION_BOTTOM_LEFT),
    ("Bottom Right", geometry.POSITION_BOTTOM_RIGHT),
]


class WatermarkPanel(QGroupBox):
    """Side panel editing a :class:`WatermarkSettings`.

    Every edit is reported through ``setting_changed(name, value)``; the
    owner decides whether it reaches a live watermark.
    """

    setting_changed = pyqtSignal(str, object)
    image_chosen = pyqtSignal(str)
    apply_requested = pyqtSignal()
    remove_requested = pyqtSignal()

    def __init__(self, settings, parent=None):
        super().__init__("Watermark Settings", parent)
        layout = QVBoxLayout(self)

        # --- Type selector ---
        type_row = QHBoxLayout()
        self._rb_text = QCheckBox("Text")
        self._rb_image = QCheckBox("Image")
        self._rb_text.setChecked(settings.type == TYPE_TEXT)
        self._rb_image.setChecked(settings.type == TYPE_IMAGE)
        self._rb_text.toggled.connect(lambda c: self._rb_image.setChecked(not c))
        self._rb_image.toggled.connect(lambda c: self._rb_text.setChecked(not c))
        self._rb_text.toggled.connect(self._on_type_toggled)
        type_row.addWidget(self._rb_text)
        type_row.addWidget(self._rb_image)
        layout.addLayout(type_row)

        # --- Text options ---
        self._text_group = QGroupBox("Text Options")
        tl = QFormLayout(self._text_group)
        self._txt_input = QLineEdit(settings.text)
        self._txt_input.setPlaceholderText("Enter watermark text")
        self._txt_input.textChanged.connect(lambda t: self.setting_changed.emit("text", t))
        tl.addRow("Text:", self._txt_input)

        self._font_size_spin = QSpinBox()
        self._font_size_spin.setRange(12, 120)
        self._font_size_spin.setValue(int(settings.font_size))
        self._font_size_spin.setSuffix(" px")
        self._font_size_spin.valueChanged.connect(
            lambda v: self.setting_changed.emit("font_size", v))
        tl.addRow("Font Size:", self._font_size_spin)

        self._wm_color = QColor(settings.color)
        self._color_btn = QPushButton(self._wm_color.name())
        self._style_color_btn()
        self._color_btn.clicked.connect(self._pick_color)
        tl.addRow("Color:", self._color_btn)
        layout.addWidget(self._text_group)

        # --- Image options ---
        self._img_group = QGroupBox("Image Options")
        il = QHBoxLayout(self._img_group)
        self._img_path_label = QLabel("(none selected)")
        self._img_btn = QPushButton("Choose Image…")
        self._img_btn.clicked.connect(self._pick_image)
        il.addWidget(self._img_path_label, 1)
        il.addWidget(self._img_btn)
        layout.addWidget(self._img_group)

        # --- Common ---
        common = QFormLayout()
        self._opacity_slider = QSlider(Qt.Horizontal)
        self._opacity_slider.setRange(0, 10)
        self._opacity_slider.setValue(int(round(settings.opacity * 10)))
        self._opacity_label = QLabel(f"{int(round(settings.opacity * 100))}%")
        self._opacity_slider.valueChanged.connect(self._on_opacity)
        oh = QHBoxLayout()
        oh.addWidget(self._opacity_slider)
        oh.addWidget(self._opacity_label)
        common.addRow("Opacity:", oh)

        self._rotation_spin = QSpinBox()
        self._rotation_spin.setRange(-180, 180)
        self._rotation_spin.setValue(int(settings.rotation))
        self._rotation_spin.setSuffix("°")
        self._rotation_spin.valueChanged.connect(
            lambda v: self.setting_changed.emit("rotation", v))
        common.addRow("Rotation:", self._rotation_spin)

        self._pos_combo = QComboBox()
        for label, value in POSITION_LABELS:
            self._pos_combo.addItem(label, value)
        idx = self._pos_combo.findData(settings.position or geometry.POSITION_CENTER)
        self._pos_combo.setCurrentIndex(max(0, idx))
        self._pos_combo.currentIndexChanged.connect(
            lambda i: self.setting_changed.emit("position", self._pos_combo.itemData(i)))
        self._pos_combo.setToolTip("Placement used when exporting PDFs")
        common.addRow("PDF Position:", self._pos_combo)

        self._follow_cb = QCheckBox("Use canvas placement in PDF export")
        self._follow_cb.setChecked(settings.follow_canvas)
        self._follow_cb.toggled.connect(
            lambda c: self.setting_changed.emit("follow_canvas", c))
        common.addRow(self._follow_cb)
        layout.addLayout(common)

        # --- Buttons ---
        btn_row = QHBoxLayout()
        self._apply_btn = QPushButton("Apply Watermark")
        self._apply_btn.clicked.connect(self.apply_requested)
        self._remove_btn = QPushButton("Remove")
        self._remove_btn.clicked.connect(self.remove_requested)
        self._remove_btn.setVisible(False)
        btn_row.addWidget(self._apply_btn)
        btn_row.addWidget(self._remove_btn)
        layout.addLayout(btn_row)

        tip = QLabel("Tip: drag the watermark on the canvas to position it. "
                     "Use the corner handles to resize and the round handle to rotate.")
        tip.setWordWrap(True)
        layout.addWidget(tip)

        self._on_type_toggled(self._rb_text.isChecked())

    def set_applied(self, applied):
        self._apply_btn.setText("Update Watermark" if applied else "Apply Watermark")
        self._remove_btn.setVisible(applied)

    def set_image_name(self, name):
        self._img_path_label.setText(name or "(none selected)")

    def _on_type_toggled(self, is_text):
        self._text_group.setVisible(is_text)
        self._img_group.setVisible(not is_text)
        self.setting_changed.emit("type", TYPE_TEXT if is_text else TYPE_IMAGE)

    def _on_opacity(self, v):
        self._opacity_label.setText(f"{v * 10}%")
        self.setting_changed.emit("opacity", v / 10.0)

    def _style_color_btn(self):
        self._color_btn.setText(self._wm_color.name())
        self._color_btn.setStyleSheet(
            f"background:{self._wm_color.name()}; color:#fff; padding:4px 12px;")

    def _pick_color(self):
        color = QColorDialog.getColor(self._wm_color, self, "Watermark Color")
        if color.isValid():
            self._wm_color = color
            self._style_color_btn()
            self.setting_changed.emit("color", color.name())

    def _pick_image(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Choose Watermark Image", "",
            "Images (*.png *.jpg *.jpeg *.gif *.webp *.bmp);;All (*)"
        )
        if path:
            self.set_image_name(os.path.basename(path))
            self.image_chosen.emit(path)
