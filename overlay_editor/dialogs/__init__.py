from .watermark import WatermarkPanel
from .signature import SignaturePanel, SignatureDrawDialog
from .nudge import NudgeButton, NudgePad

__all__ = [
    "WatermarkPanel", "SignaturePanel", "SignatureDrawDialog",
    "NudgeButton", "NudgePad",
]
