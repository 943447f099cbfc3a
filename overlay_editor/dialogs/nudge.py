"""Arrow pad that nudges the watermark or the signature."""

from PyQt5.QtWidgets import QGroupBox, QGridLayout, QToolButton
from PyQt5.QtCore import pyqtSignal


class NudgeButton(QToolButton):
    """Arrow button: press starts the repeat, release OR leaving stops it.

    Qt keeps delivering the release to the button that grabbed the mouse,
    but the leave event is handled too so the repeat cannot outlive the
    pointer being over the button.
    """

    hold_started = pyqtSignal(str)
    hold_stopped = pyqtSignal()

    def __init__(self, direction, text, parent=None):
        super().__init__(parent)
        self._direction = direction
        self.setText(text)
        self.setToolTip(f"Move {direction} (hold to repeat)")
        self.setFixedSize(32, 32)
        self.pressed.connect(lambda: self.hold_started.emit(self._direction))
        self.released.connect(self.hold_stopped)

    def leaveEvent(self, event):
        self.hold_stopped.emit()
        super().leaveEvent(event)


class NudgePad(QGroupBox):
    """Four arrow buttons bound to one overlay tag."""

    nudge_started = pyqtSignal(str, str)  # tag, direction
    nudge_stopped = pyqtSignal()

    LAYOUT = (
        ("up", "▲", 0, 1),
        ("left", "◀", 1, 0),
        ("right", "▶", 1, 2),
        ("down", "▼", 2, 1),
    )

    def __init__(self, title, tag, parent=None):
        super().__init__(title, parent)
        self._tag = tag
        grid = QGridLayout(self)
        grid.setSpacing(2)
        self._buttons = []
        for direction, text, row, col in self.LAYOUT:
            btn = NudgeButton(direction, text, self)
            btn.hold_started.connect(lambda d: self.nudge_started.emit(self._tag, d))
            btn.hold_stopped.connect(self.nudge_stopped)
            grid.addWidget(btn, row, col)
            self._buttons.append(btn)

    def buttons(self):
        return list(self._buttons)
